"""
Input Validator Tests.

Tests for ERD content validation (types, encodings, size limit) and the
file path checks used by the compiler and the CLI.
"""

import os
import sys

import pytest

# Add src to path
src_dir = os.path.join(os.path.dirname(__file__), '..', '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from core.validators.input import InputValidator


SIMPLE_ERD = 'erDiagram\n CUSTOMER { string name }'


# =============================================================================
# Content
# =============================================================================

@pytest.mark.unit
class TestValidateErdContent:
    """ERD content validation."""

    def test_text_passes_through(self):
        assert InputValidator.validate_erd_content(SIMPLE_ERD) == SIMPLE_ERD

    def test_empty_content_is_accepted(self):
        assert InputValidator.validate_erd_content("") == ""
        assert InputValidator.validate_erd_content("   \n\t  ") == "   \n\t  "

    def test_bytes_are_decoded(self):
        assert InputValidator.validate_erd_content(SIMPLE_ERD.encode("utf-8")) == SIMPLE_ERD

    def test_bom_is_stripped(self):
        raw = "\ufeff".encode("utf-8") + SIMPLE_ERD.encode("utf-8")
        assert InputValidator.validate_erd_content(raw) == SIMPLE_ERD
        assert InputValidator.validate_erd_content("\ufeff" + SIMPLE_ERD) == SIMPLE_ERD

    def test_bytearray(self):
        assert InputValidator.validate_erd_content(bytearray(b"erDiagram")) == "erDiagram"

    def test_none_rejected(self):
        with pytest.raises(ValueError, match="cannot be None"):
            InputValidator.validate_erd_content(None)

    @pytest.mark.parametrize("content", [42, 1.5, ["erDiagram"], {"a": 1}])
    def test_wrong_type_rejected(self, content):
        with pytest.raises(TypeError, match="must be str or bytes"):
            InputValidator.validate_erd_content(content)

    def test_invalid_utf8_rejected(self):
        with pytest.raises(ValueError, match="not valid UTF-8"):
            InputValidator.validate_erd_content(b"erDiagram \xc3\x28")

    def test_size_limit(self):
        content = "x" * (2 * 1024 * 1024)
        with pytest.raises(ValueError, match="larger than"):
            InputValidator.validate_erd_content(content, max_size_mb=1)
        assert InputValidator.validate_erd_content(content, max_size_mb=3) == content


# =============================================================================
# Paths
# =============================================================================

@pytest.mark.unit
class TestValidateFilePath:
    """File path validation."""

    def test_valid_input_path(self, write_erd):
        path = write_erd(SIMPLE_ERD, "model.mmd")
        assert InputValidator.validate_input_erd_path(str(path)) == path.resolve()

    @pytest.mark.parametrize("name", ["model.mermaid", "model.erd", "README.md", "notes.TXT"])
    def test_accepted_extensions(self, write_erd, name):
        path = write_erd(SIMPLE_ERD, name)
        assert InputValidator.validate_input_erd_path(str(path)).name == name

    def test_wrong_extension(self, write_erd):
        path = write_erd(SIMPLE_ERD, "model.xyz")
        with pytest.raises(ValueError, match="extension"):
            InputValidator.validate_input_erd_path(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InputValidator.validate_input_erd_path(str(tmp_path / "missing.mmd"))

    def test_directory_is_not_a_file(self, tmp_path):
        folder = tmp_path / "folder.mmd"
        folder.mkdir()
        with pytest.raises(ValueError, match="not a file"):
            InputValidator.validate_input_erd_path(str(folder))

    @pytest.mark.parametrize("path", ["", "   "])
    def test_empty_path(self, path):
        with pytest.raises(ValueError, match="cannot be empty"):
            InputValidator.validate_file_path(path)

    def test_non_string_path(self):
        with pytest.raises(TypeError, match="must be string"):
            InputValidator.validate_file_path(123)

    @pytest.mark.parametrize("path", ["../secret.mmd", "models/../../etc/passwd", "..\\secret.mmd"])
    def test_traversal_rejected(self, path):
        with pytest.raises(ValueError, match="Path traversal"):
            InputValidator.validate_file_path(path, check_exists=False)

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlink_rejected(self, write_erd, tmp_path):
        target = write_erd(SIMPLE_ERD, "target.mmd")
        link = tmp_path / "link.mmd"
        link.symlink_to(target)

        with pytest.raises(ValueError, match="Symlink"):
            InputValidator.validate_input_erd_path(str(link))
        assert InputValidator.validate_input_erd_path(str(link), reject_symlinks=False) == target.resolve()


@pytest.mark.unit
class TestValidateOutputPath:
    """Output path validation."""

    def test_new_output_file(self, tmp_path):
        path = tmp_path / "report.json"
        assert InputValidator.validate_output_file_path(str(path)) == path.resolve()

    def test_missing_parent_directory(self, tmp_path):
        with pytest.raises(ValueError, match="Parent directory does not exist"):
            InputValidator.validate_output_file_path(str(tmp_path / "nope" / "report.json"))

    def test_output_extension(self, tmp_path):
        with pytest.raises(ValueError, match="extension"):
            InputValidator.validate_output_file_path(str(tmp_path / "report.exe"))
