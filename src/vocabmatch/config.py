import os


class Settings:
    PROJECT_NAME: str = "vocabmatch"
    DEBUG: bool = False
    LOG_DIR: str = "log"
    LOG_FILE: str = "vocabmatch.log"
    LOG_TO_DB: bool = os.environ.get("LOG_TO_DB", "1") == "1"
    DB_DIR: str = "db"
    DB_FILE: str = "vocabmatch.db"
    VOCAB_DIR: str = "vocabulary"

    WORD_COUNTS = {"Easy": 10, "Medium": 15, "Hard": 20}
    POINTS_PER_MATCH: int = 10
    MATCH_DELAY_MS: int = 600
    MISMATCH_DELAY_MS: int = 1200

    HINT_DISPLAY_MS: int = 8000
    HINT_MODEL: str = os.environ.get("HINT_MODEL", "gemini-3-flash-preview")
    HINT_API_KEY: str = os.environ.get("API_KEY", "")
    HINT_BASE_URL: str = os.environ.get(
        "HINT_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    HINT_TIMEOUT_SECONDS: float = 10.0
    HINT_FALLBACK_TEXT: str = "Try matching the terms!"
    HINT_EMPTY_TEXT: str = "No hint available."

    RESULT_SINK_URL: str = os.environ.get("RESULT_SINK_URL", "")
    RESULT_TIMEOUT_SECONDS: float = 15.0

    SESSION_COOKIE_NAME: str = "match_game_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
