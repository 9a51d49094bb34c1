from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
        populate_by_name=True,
    )

    app_name: str = 'Scan Report Builder'
    log_level: str = 'INFO'

    reports_dir: Path = Field(
        default=Path('./ScanDoc'),
        validation_alias=AliasChoices('REPORTS_DIR', 'SCANDOC_DIR'),
    )
    assets_dir: Path = Field(default=Path('./assets'))

    # QR code on the second page of the exported plagiarism report
    qr_base_url: str = Field(
        default='http://localhost:4000',
        validation_alias=AliasChoices('QR_BASE_URL', 'SCAN_REPORT_BASE_URL'),
    )
    qr_width: float = 120
    qr_height: float = 150
    qr_right_margin: float = 5
    qr_top_offset: float = 405
    qr_border: int = 2

    # Stamps applied to the exported plagiarism report (PDF points)
    header_image_height: float = 130
    footer_image_width: float = 100
    footer_image_height: float = 50
    footer_link: str = 'https://www.google.com'

    # Generated pages
    footer_text: str = 'Generated by Your App'
    instagram_url: str = 'https://www.instagram.com/yourcompany'
    facebook_url: str = 'https://www.facebook.com/yourcompany'
    linkedin_url: str = 'https://www.linkedin.com/company/yourcompany'
    twitter_url: str = 'https://twitter.com/yourcompany'
    learn_more_base_url: str = 'https://example.com'
    organisation_name: str = 'Skyline Academics'

    # External report service
    service_base_url: str | None = None
    service_api_key: str | None = None
    service_generate_endpoint: str = '/api/scan/generate-report/{user_id}/{scan_id}'
    service_timeout_seconds: int = 60

    # Input polling
    wait_poll_interval_seconds: float = 1.0
    wait_timeout_seconds: int | None = None

    def social_links(self) -> list[tuple[str, str]]:
        return [
            ('instagram_icon', self.instagram_url),
            ('facebook_icon', self.facebook_url),
            ('linkedin_icon', self.linkedin_url),
            ('twitter_icon', self.twitter_url),
        ]

    def learn_more_url(self, slug: str) -> str:
        return f"{self.learn_more_base_url.rstrip('/')}/{slug.lstrip('/')}"

    def qr_target_url(self, identifier: str) -> str:
        return f"{self.qr_base_url.rstrip('/')}/user/scanreport/{identifier}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.reports_dir.mkdir(parents=True, exist_ok=True)
    return settings
