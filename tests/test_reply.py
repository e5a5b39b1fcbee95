import io

import pytest

from ftpctl.core.errors import ErrorKind, FtpError
from ftpctl.core.reply import Reply, ReplyReader


def read(raw: bytes) -> Reply:
    return ReplyReader(io.BytesIO(raw)).read_reply()


class TestReply:

    def test_category_and_error_flag(self):
        assert Reply("227", "Entering Passive Mode").category == "success"
        assert Reply("150", "Opening").category == "preliminary"
        assert Reply("331", "Need password").category == "intermediate"
        assert Reply("421", "Closing").is_error
        assert Reply("550", "No such file").is_error
        assert not Reply("200", "OK").is_error

    def test_is_immutable(self):
        reply = Reply("200", "OK")
        with pytest.raises(AttributeError):
            reply.code = "500"

    @pytest.mark.parametrize("code", ["20", "2000", "abc", "2 0"])
    def test_rejects_bad_code(self, code):
        with pytest.raises(FtpError) as exc:
            Reply(code, "text")
        assert exc.value.kind is ErrorKind.PROTOCOL

    def test_str(self):
        assert str(Reply("200", "OK")) == "200 OK"


class TestReplyReader:

    def test_single_line(self):
        assert read(b"200 OK\r\n") == Reply("200", "OK")

    def test_single_line_without_trailing_eol(self):
        assert read(b"200 OK") == Reply("200", "OK")

    def test_multi_line_joined_with_single_spaces(self):
        assert read(b"150-Opening\r\n more text\r\n150 done\r\n") == Reply("150", "Opening more text done")

    def test_multi_line_continuation_with_code_prefix(self):
        raw = b"211-Features:\r\n MDTM\r\n211-SIZE\r\n211 End\r\n"
        assert read(raw) == Reply("211", "Features: MDTM SIZE End")

    def test_multi_line_ignores_other_codes_inside(self):
        raw = b"230-Welcome\r\n200 is not the end\r\n230 Logged in\r\n"
        assert read(raw) == Reply("230", "Welcome 200 is not the end Logged in")

    def test_reads_one_reply_at_a_time(self):
        reader = ReplyReader(io.BytesIO(b"220 Ready\r\n331 Password\r\n"))
        assert reader.read_reply().code == "220"
        assert reader.read_reply().code == "331"

    @pytest.mark.parametrize("raw", [b"", b"\r\n"])
    def test_empty_reply_is_io_error(self, raw):
        with pytest.raises(FtpError) as exc:
            read(raw)
        assert exc.value.kind is ErrorKind.IO

    def test_truncated_multi_line_is_io_error(self):
        with pytest.raises(FtpError) as exc:
            read(b"150-Opening\r\n more text\r\n")
        assert exc.value.kind is ErrorKind.IO

    def test_non_numeric_code_is_protocol_error(self):
        with pytest.raises(FtpError) as exc:
            read(b"HELLO there\r\n")
        assert exc.value.kind is ErrorKind.PROTOCOL

    def test_stream_error_is_io_error(self):
        class Broken:
            def readline(self):
                raise ConnectionResetError("reset by peer")

        with pytest.raises(FtpError) as exc:
            ReplyReader(Broken()).read_reply()
        assert exc.value.kind is ErrorKind.IO
        assert isinstance(exc.value.__cause__, ConnectionResetError)
