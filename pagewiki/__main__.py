import uvicorn
from dotenv import load_dotenv

from pagewiki.config import Settings


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    uvicorn.run("pagewiki.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
