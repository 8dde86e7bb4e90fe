import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_DAYS = int(os.getenv("TOKEN_EXPIRY_DAYS", 30))

# Any method string werkzeug's generate_password_hash accepts,
# e.g. "scrypt" or "pbkdf2:sha256:600000".
PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def database_url():
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return (
        f"postgresql+psycopg2://{quote_plus(os.getenv('DATABASE_USER', 'postgres'))}:"
        f"{quote_plus(os.getenv('DATABASE_PASSWORD', 'postgres'))}@"
        f"{os.getenv('DATABASE_HOST', 'localhost')}:"
        f"{os.getenv('DATABASE_PORT', '5432')}/"
        f"{os.getenv('DATABASE_NAME', 'postgres')}"
    )
