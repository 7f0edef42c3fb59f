from passlib.context import CryptContext

from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=configs.PASSWORD_HASH_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    return pwd_context.verify(password, password_hash)
