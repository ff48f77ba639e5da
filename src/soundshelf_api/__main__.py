"""Run the soundshelf API server: python -m soundshelf_api."""

import sys

import uvicorn
from pydantic import ValidationError

from soundshelf_api.settings import get_settings


def _format_errors(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "settings"
        lines.append(f"  {field}: {item['msg']}")
    return "\n".join(lines)


def main() -> None:
    """Validate settings, then serve the app with uvicorn.

    The app configures its own Rich logging, so uvicorn's default log
    config is disabled.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{_format_errors(e)}", file=sys.stderr)
        sys.exit(1)

    uvicorn.run(
        "soundshelf_api.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
