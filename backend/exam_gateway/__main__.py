"""Run the gateway with uvicorn: python -m exam_gateway"""

import uvicorn

from exam_gateway.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "exam_gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
