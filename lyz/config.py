from dotenv import load_dotenv
import os

# Carga variables del .env
load_dotenv()

# ----------------------
# Variables globales
# ----------------------
S3_BUCKET = os.getenv("S3_BUCKET", "lyz-files")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")  # MinIO, e.g. http://localhost:9000
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
PRESIGNED_URL_EXPIRATION = int(os.getenv("PRESIGNED_URL_EXPIRATION", str(24 * 60 * 60)))

DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "lyz")
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")

DATABASE_URL = os.getenv("DATABASE_URL") or f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"

JWT_SECRET = os.getenv("JWT_SECRET", "your_jwt_secret_key_here")
JWT_EXPIRATION_MINUTES = int(os.getenv("JWT_EXPIRATION_MINUTES", "60"))
JWT_REFRESH_EXPIRATION_DAYS = int(os.getenv("JWT_REFRESH_EXPIRATION_DAYS", "7"))

CURSEDUCA_API_URL = os.getenv("CURSEDUCA_API_URL", "")
CURSEDUCA_API_KEY = os.getenv("CURSEDUCA_API_KEY", "")
CURSEDUCA_TIMEOUT = float(os.getenv("CURSEDUCA_TIMEOUT", "10"))

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

DEFAULT_TOKEN_LIMIT = int(os.getenv("DEFAULT_TOKEN_LIMIT", "10000"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

SUPERADMIN_EMAIL = os.getenv("SUPERADMIN_EMAIL", "admin@lyz.healthcare")
SUPERADMIN_PASSWORD = os.getenv("SUPERADMIN_PASSWORD", "Admin@123")
SUPERADMIN_NAME = os.getenv("SUPERADMIN_NAME", "Lyz Admin")

# ----------------------
# Clase Config (para Flask)
# ----------------------
class Config:
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES

    S3_BUCKET = S3_BUCKET
    S3_ENDPOINT_URL = S3_ENDPOINT_URL
    AWS_REGION = AWS_REGION
    PRESIGNED_URL_EXPIRATION = PRESIGNED_URL_EXPIRATION

    JWT_SECRET = JWT_SECRET
    JWT_EXPIRATION_MINUTES = JWT_EXPIRATION_MINUTES
    JWT_REFRESH_EXPIRATION_DAYS = JWT_REFRESH_EXPIRATION_DAYS

    CURSEDUCA_API_URL = CURSEDUCA_API_URL
    CURSEDUCA_API_KEY = CURSEDUCA_API_KEY
    CURSEDUCA_TIMEOUT = CURSEDUCA_TIMEOUT

    OPENAI_API_KEY = OPENAI_API_KEY
    OPENAI_MODEL = OPENAI_MODEL

    DEFAULT_TOKEN_LIMIT = DEFAULT_TOKEN_LIMIT

    SUPERADMIN_EMAIL = SUPERADMIN_EMAIL
    SUPERADMIN_PASSWORD = SUPERADMIN_PASSWORD
    SUPERADMIN_NAME = SUPERADMIN_NAME


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET = "test-secret"
    CURSEDUCA_API_URL = "https://curseduca.test/api"
    CURSEDUCA_API_KEY = "test-key"
