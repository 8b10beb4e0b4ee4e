import os
from pathlib import Path
from typing import Any

import structlog
from pydantic_settings import (
    PydanticBaseSettingsSource,
)

logger = structlog.stdlib.get_logger(__name__)


class DockerSecretsSettingsSource(PydanticBaseSettingsSource):
    """
    Settings source that reads values from Docker secret files.

    When <SETTING_NAME>_FILE is set, the setting is read from that path.

    Example:
        AUTH_CREDENTIALS_FILE=/run/secrets/hubproxy_auth_credentials
        loads AUTH_CREDENTIALS from that file, trailing newline stripped
    """

    def read_secret_file(self, field_name: str) -> str | None:
        file_path = os.getenv(f"{field_name}_FILE")
        if not file_path:
            return None

        path = Path(file_path)
        if not path.is_file():
            logger.warning(
                "Secret file does not exist", setting=field_name, path=file_path
            )
            return None

        try:
            return path.read_text().strip()
        except OSError as e:
            logger.warning(
                "Could not read secret file",
                setting=field_name,
                path=file_path,
                error=str(e),
            )
            return None

    def get_field_value(
        self, field: Any, field_name: str
    ) -> tuple[Any, str, bool]:
        return self.read_secret_file(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        values: dict[str, Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                values[key] = value

        return values
