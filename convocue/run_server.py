import logging
import os

from convocue.config import Config


def main():
    logging.basicConfig(
        level=Config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import uvicorn
    uvicorn.run(
        "convocue.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8010")),
        log_level=Config.LOG_LEVEL.lower(),
    )

if __name__ == "__main__":
    main()
