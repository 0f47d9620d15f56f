"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Policy engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MATTERGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "matterguard"
    debug: bool = False

    # Roles
    super_admin_role: str = "super_admin"  # Bypasses permission and role checks
    privilege_roles: list[str] = ["attorney", "partner", "admin"]  # Eligible for PRIVILEGED+ without metadata

    # Privilege classification
    # False keeps the permissive fallback: joint-defense resources are allowed
    # without verifying group membership (logged as a warning).
    enforce_joint_defense_membership: bool = True

    # Conflict screening
    # True: a conflict-sensitive route with no resolvable matter is allowed
    # and audited at warning level. False: it is denied with MISSING_CONTEXT.
    conflict_fail_open_on_missing_context: bool = True
    conflict_check_id_prefix: str = "CHK"

    # Audit
    audit_logger_name: str = "matterguard.audit"
    audit_hash_chain_enabled: bool = True  # SHA-256 link between consecutive records

    @property
    def privilege_role_set(self) -> frozenset[str]:
        """Privilege-eligible roles, lower-cased for comparison."""
        return frozenset(role.lower() for role in self.privilege_roles)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
