"""
Input validation utilities for the ERD compiler.

This module provides centralized input validation with consistent error messages for:
- ERD content (text or UTF-8 bytes, size limit)
- File path validation with security checks
- Output path validation

Security features:
- Path traversal detection (../ sequences)
- Symlink detection and warning
- Extension validation

Usage:
    from core.validators.input import InputValidator

    # Validate ERD content (bytes are decoded, BOM stripped)
    content = InputValidator.validate_erd_content(raw)

    # Validate file path with security checks
    validated_path = InputValidator.validate_input_erd_path(path)
"""

import os
import logging
from pathlib import Path
from typing import Any, List, Optional

from constants import FileExtensions, ProcessingLimits

logger = logging.getLogger(__name__)

TRAVERSAL_PATTERNS = ('../', '..\\', '/..', '\\..')


class InputValidator:
    """
    Centralized input validation for the compiler's public entry points.

    Provides consistent validation with clear error messages for:
    - ERD content validation
    - File path validation with security checks
    """

    ERD_EXTENSIONS = list(FileExtensions.ERD_EXTENSIONS)
    OUTPUT_EXTENSIONS = list(FileExtensions.OUTPUT_EXTENSIONS)

    @staticmethod
    def validate_erd_content(content: Any, max_size_mb: float = ProcessingLimits.MAX_INPUT_MB) -> str:
        """
        Validate ERD content.

        Empty or whitespace-only content is accepted; the pipeline rejects it
        as a document without entities.

        Args:
            content: ERD text (str) or UTF-8 encoded bytes.
            max_size_mb: Largest accepted input.

        Returns:
            Validated content string.

        Raises:
            ValueError: If content is None, not valid UTF-8 or too large.
            TypeError: If content is neither str nor bytes.
        """
        if content is None:
            raise ValueError("ERD content cannot be None")

        if isinstance(content, (bytes, bytearray)):
            size = len(content)
            try:
                content = bytes(content).decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise ValueError(f"ERD content is not valid UTF-8: {e}") from e
        elif isinstance(content, str):
            content = content.lstrip("\ufeff")
            size = len(content.encode("utf-8", errors="surrogatepass"))
        else:
            raise TypeError(f"ERD content must be str or bytes, got {type(content).__name__}")

        size_mb = size / (1024 * 1024)
        if size_mb > max_size_mb:
            raise ValueError(
                f"ERD content is {size_mb:.1f}MB, larger than the {max_size_mb}MB limit"
            )

        return content

    @staticmethod
    def _has_traversal(path_str: str) -> bool:
        normalized = path_str.replace('\\', '/')
        if any(pattern in path_str or pattern in normalized for pattern in TRAVERSAL_PATTERNS):
            return True
        return '..' in Path(path_str).parts

    @staticmethod
    def _check_symlink(path_obj: Path, strict: bool = False) -> None:
        """
        Check if path is a symlink.

        Raises:
            ValueError: If symlink detected and strict mode enabled
        """
        try:
            is_link = path_obj.is_symlink()
        except OSError:
            if strict:
                raise ValueError(f"Cannot verify symlink status for: {path_obj}")
            return
        if is_link:
            msg = (
                f"Security error: Symlink detected: {path_obj}. "
                f"Symlinks are not allowed for security reasons. "
                f"Please use the actual file path instead."
            )
            if strict:
                raise ValueError(msg)
            logger.warning(msg)

    @staticmethod
    def _normalize_extensions(extensions: List[str]) -> List[str]:
        return [
            ext.lower() if ext.startswith('.') else f'.{ext.lower()}'
            for ext in extensions
        ]

    @classmethod
    def validate_file_path(
        cls,
        path: Any,
        allowed_extensions: Optional[List[str]] = None,
        check_exists: bool = True,
        reject_symlinks: bool = True,
        allow_relative_up: bool = False,
    ) -> Path:
        """
        Validate file path for security and correctness.

        Args:
            path: Path to validate (should be non-empty string)
            allowed_extensions: List of allowed extensions (e.g., ['.mmd', '.md'])
            check_exists: Whether to verify the file exists and is readable
            reject_symlinks: If True, raise exception on symlinks; if False, warn only
            allow_relative_up: If True, allow '..' components

        Returns:
            Validated Path object (resolved to absolute path)

        Raises:
            TypeError: If path is not a string
            ValueError: If path is empty, has invalid extension, traversal detected, or symlink found
            FileNotFoundError: If file doesn't exist (when check_exists=True)
            PermissionError: If file is not readable
        """
        if not isinstance(path, str):
            raise TypeError(f"File path must be string, got {type(path).__name__}")

        if not path.strip():
            raise ValueError("File path cannot be empty")

        path = path.strip()

        if not allow_relative_up and cls._has_traversal(path):
            raise ValueError(
                f"Path traversal detected in path: {path}. "
                f"Paths containing '..' are not allowed for security reasons."
            )

        path_obj = Path(path).resolve()
        cls._check_symlink(Path(path), strict=reject_symlinks)

        if check_exists:
            if not path_obj.exists():
                raise FileNotFoundError(f"File not found: {path_obj}")
            if not path_obj.is_file():
                raise ValueError(f"Path is not a file: {path_obj}")

        if allowed_extensions:
            normalized_extensions = cls._normalize_extensions(allowed_extensions)
            if path_obj.suffix.lower() not in normalized_extensions:
                raise ValueError(
                    f"Invalid file extension: '{path_obj.suffix}'. "
                    f"Expected one of: {', '.join(normalized_extensions)}"
                )

        if check_exists and not os.access(path_obj, os.R_OK):
            raise PermissionError(f"File is not readable: {path_obj}")

        return path_obj

    @classmethod
    def validate_input_erd_path(cls, path: Any, reject_symlinks: bool = True) -> Path:
        """
        Validate input ERD file path.

        Convenience method with ERD-specific extension validation.
        """
        return cls.validate_file_path(
            path,
            allowed_extensions=cls.ERD_EXTENSIONS,
            check_exists=True,
            reject_symlinks=reject_symlinks,
        )

    @classmethod
    def validate_output_file_path(
        cls,
        path: Any,
        allowed_extensions: Optional[List[str]] = None,
        reject_symlinks: bool = True,
    ) -> Path:
        """
        Validate output file path for writing.

        Similar to validate_file_path but:
        - Does not require file to exist
        - Validates parent directory exists and is writable

        Raises:
            TypeError: If path is not a string
            ValueError: If path is empty, has invalid extension, or traversal detected
            PermissionError: If parent directory is not writable
        """
        path_obj = cls.validate_file_path(
            path,
            allowed_extensions=allowed_extensions or cls.OUTPUT_EXTENSIONS,
            check_exists=False,
            reject_symlinks=reject_symlinks,
        )

        parent_dir = path_obj.parent
        if not parent_dir.exists():
            raise ValueError(f"Parent directory does not exist: {parent_dir}")

        if not os.access(parent_dir, os.W_OK):
            raise PermissionError(f"Cannot write to directory: {parent_dir}")

        if path_obj.exists() and not os.access(path_obj, os.W_OK):
            raise PermissionError(f"File exists but is not writable: {path_obj}")

        return path_obj
