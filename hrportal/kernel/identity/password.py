"""
Password hashing utilities using bcrypt.
"""

from typing import Optional

import bcrypt

from hrportal.config import get_settings


class PasswordHasher:
    """Password hashing service."""
    
    @staticmethod
    def _truncate_password(password: str) -> bytes:
        """
        Truncate password to 72 bytes (bcrypt limit) and encode.
        
        bcrypt only uses the first 72 bytes of a password.
        """
        return password.encode('utf-8')[:72]
    
    @staticmethod
    def hash(password: str, rounds: Optional[int] = None) -> str:
        """
        Hash a password using bcrypt.
        
        Args:
            password: Plain text password
            rounds: Cost factor; defaults to the configured bcrypt_rounds
            
        Returns:
            Hashed password string
        """
        pwd_bytes = PasswordHasher._truncate_password(password)
        salt = bcrypt.gensalt(rounds=rounds or get_settings().bcrypt_rounds)
        hashed = bcrypt.hashpw(pwd_bytes, salt)
        return hashed.decode('utf-8')
    
    @staticmethod
    def verify(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.
        
        A malformed stored hash counts as a mismatch.
        """
        try:
            pwd_bytes = PasswordHasher._truncate_password(plain_password)
            hash_bytes = hashed_password.encode('utf-8')
            return bcrypt.checkpw(pwd_bytes, hash_bytes)
        except ValueError:
            return False


# Convenience functions
def hash_password(password: str) -> str:
    """Hash a password."""
    return PasswordHasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password."""
    return PasswordHasher.verify(plain_password, hashed_password)
