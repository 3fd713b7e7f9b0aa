import uvicorn

from formbuilder.core.config.settings import get_settings


def run():
    settings = get_settings()
    uvicorn.run(
        "formbuilder.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
    )


if __name__ == "__main__":
    run()
