"""Configuration management for Leadflow."""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # Supabase Configuration
    # ===========================================
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase service key")

    # ===========================================
    # OpenAI Configuration (for CrewAI)
    # ===========================================
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API key")
    OPENAI_MODEL: str = Field(default="gpt-4o", description="Model for CrewAI agents")

    # ===========================================
    # Firecrawl Configuration
    # ===========================================
    FIRECRAWL_API_KEY: str = Field(default="", description="Firecrawl API key for lead research")

    # ===========================================
    # Slack Approval Channel
    # ===========================================
    SLACK_BOT_TOKEN: str = Field(default="", description="Slack bot OAuth token")
    SLACK_SIGNING_SECRET: str = Field(default="", description="Slack request signing secret")
    SLACK_CHANNEL_ID: str = Field(default="", description="Channel that receives approval requests")
    SLACK_API_URL: str = Field(
        default="https://slack.com/api",
        description="Slack Web API base URL"
    )

    # ===========================================
    # Google Service Account Configuration
    # ===========================================
    GOOGLE_CREDENTIALS_PATH: str = Field(
        default="./credentials/google-service-account.json",
        description="Path to Google service account JSON"
    )
    OUTREACH_SENDER: str = Field(
        default="",
        description="Mailbox approved outreach emails are sent from"
    )

    # ===========================================
    # Server Configuration
    # ===========================================
    DEBUG: bool = Field(default=True, description="Debug mode")

    # ===========================================
    # Workflow
    # ===========================================
    ENABLE_AI_RESEARCH: bool = Field(
        default=True,
        description="Start the research workflow for hot and qualified leads"
    )
    MOCK_PROVIDERS: bool = Field(
        default=False,
        description="Use canned research, qualification, drafting and approval providers"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def slack_configured(self) -> bool:
        return bool(self.SLACK_BOT_TOKEN and self.SLACK_SIGNING_SECRET)


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
