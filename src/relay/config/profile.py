"""AI request profile loader and Pydantic model.

The request profile is the fixed block of fields sent with every prompt:
user identity, agent identifier, prompt-engineering and result-limiting
parameters.
"""

from pathlib import Path
from typing import Annotated

import yaml
from pydantic import BaseModel, ConfigDict, Field

from relay.config.settings import get_settings

DEFAULT_USER_ID = "koki.hosaka@geniee.co.jp"
DEFAULT_AGENT_NAME = "96d712ad-ec3d-4309-a2c6-d3040e0767a2"


class ConfigLoadError(Exception):
    """Raised when the request profile cannot be loaded."""

    pass


class AIRequestProfile(BaseModel):
    """Fixed request fields merged into every AI chat request."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    user_id: Annotated[str, Field(alias="userId", min_length=1)] = DEFAULT_USER_ID
    system_prompt: Annotated[str, Field(alias="systemPrompt")] = ""
    artifact_ids: list[str] = Field(default_factory=list, alias="artifactIds")
    chat_context_limit: Annotated[int, Field(alias="chatContextLimit", ge=0)] = 100
    stream: bool = False
    agent_name: Annotated[str, Field(alias="agentName", min_length=1)] = DEFAULT_AGENT_NAME
    temperature: Annotated[float, Field(ge=0.0, le=2.0)] = 0.7
    reference_type: Annotated[str, Field(alias="referenceType")] = "detail"
    top_results: Annotated[int, Field(alias="topResults", ge=1)] = 20

    def to_request_fields(self) -> dict:
        """Serialize to the camelCase field names the AI API expects."""
        return self.model_dump(by_alias=True)


def load_request_profile(profile_path: str | Path | None = None) -> AIRequestProfile:
    """Load the AI request profile from a YAML file.

    Args:
        profile_path: Path to the YAML file. If None, uses settings; if
            settings have no path either, the built-in defaults are returned.

    Returns:
        Validated AIRequestProfile instance.

    Raises:
        ConfigLoadError: If the file cannot be read or validation fails.
    """
    if profile_path is None:
        profile_path = get_settings().ai_profile_path
    if not profile_path:
        return AIRequestProfile()

    path = Path(profile_path)

    if not path.exists():
        raise ConfigLoadError(f"Request profile not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            raw_profile = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigLoadError(f"Failed to read {path}: {e}") from e

    if raw_profile is None:
        return AIRequestProfile()

    try:
        return AIRequestProfile.model_validate(raw_profile)
    except ValueError as e:
        raise ConfigLoadError(f"Request profile validation failed: {e}") from e
