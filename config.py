import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

PLACEHOLDER = "your_value_here"

SHEETS_ENV_VARS = (
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_SERVICE_ACCOUNT_EMAIL",
    "GOOGLE_PRIVATE_KEY",
)


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    port: int = 5000
    frontend_url: str = "http://localhost:5173"
    log_level: str = "INFO"
    spreadsheet_id: Optional[str] = None
    service_account_email: Optional[str] = None
    private_key: Optional[str] = None
    products_sheet_name: str = "Products"
    orders_sheet_name: str = "Orders"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            environment=env.get("APP_ENV", "development"),
            port=int(env.get("PORT", 5000)),
            frontend_url=env.get("FRONTEND_URL", "http://localhost:5173"),
            log_level=env.get("LOG_LEVEL", "INFO"),
            spreadsheet_id=env.get("GOOGLE_SHEETS_SPREADSHEET_ID"),
            service_account_email=env.get("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
            private_key=env.get("GOOGLE_PRIVATE_KEY"),
            products_sheet_name=env.get("PRODUCTS_SHEET_NAME", "Products"),
            orders_sheet_name=env.get("ORDERS_SHEET_NAME", "Orders"),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def _sheets_values(self) -> dict:
        return {
            "GOOGLE_SHEETS_SPREADSHEET_ID": self.spreadsheet_id,
            "GOOGLE_SERVICE_ACCOUNT_EMAIL": self.service_account_email,
            "GOOGLE_PRIVATE_KEY": self.private_key,
        }

    def missing_sheets_settings(self) -> List[str]:
        """Names of the Google credentials that are unset, blank or still the placeholder."""
        missing = []
        for name, value in self._sheets_values().items():
            if not value or not value.strip() or value == PLACEHOLDER:
                missing.append(name)
        return missing

    @property
    def sheets_configured(self) -> bool:
        return not self.missing_sheets_settings()

    @property
    def cors_origins(self) -> List[str]:
        return [self.frontend_url, "http://localhost:3000", "http://localhost:5000"]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
