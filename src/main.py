from src.app import AppSettings, build_service
from src.services import ProgressService

__all__ = ["main", "ProgressService"]


def main() -> None:
    """Entry point: apply migrations and verify the configuration."""
    settings = AppSettings.from_env()
    build_service(settings)


if __name__ == "__main__":
    main()
