import asyncio
import codecs
import re
import subprocess

from run_long_command.constants import MAX_OUTPUT_LENGTH

# Pre-compile regexes for performance
# CSI sequences (colors, cursor moves) and OSC sequences (window titles, links)
ANSI_ESCAPE_RE = re.compile(
    r"\x1B(?:\[[0-9;?]*[a-zA-Z]|\][^\x07\x1B]*(?:\x07|\x1B\\))"
)
# An escape sequence cut off by the output cap
PARTIAL_ESCAPE_RE = re.compile(r"\x1B(?:\[[0-9;?]*|\][^\x07\x1B]*)?\Z")
CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def clean_chunk(chunk: str) -> str:
    """
    Cleans a chunk of output by removing null bytes, non-printable control
    characters, and ANSI escape codes.
    """
    if not isinstance(chunk, str):
        return str(chunk)

    # Remove ANSI escape codes
    without_ansi = PARTIAL_ESCAPE_RE.sub("", ANSI_ESCAPE_RE.sub("", chunk))

    # Remove disruptive control characters (excluding TAB, LF, CR)
    return CONTROL_CHAR_RE.sub("", without_ansi)


class OutputBuffer:
    """Combined stdout/stderr of one command, capped at ``limit`` characters.

    Chunks are kept raw and cleaned on read, so escape sequences split across
    reads are still removed.
    """

    def __init__(self, limit: int = MAX_OUTPUT_LENGTH):
        self.limit = limit
        self._chunks: list[str] = []
        self._size = 0

    @property
    def full(self) -> bool:
        return self._size >= self.limit

    def append(self, chunk: str):
        if not chunk or self.full:
            return
        chunk = chunk[: self.limit - self._size]
        self._chunks.append(chunk)
        self._size += len(chunk)

    @property
    def text(self) -> str:
        return clean_chunk("".join(self._chunks))

    def __len__(self) -> int:
        return self._size


async def drain_stream(stream: asyncio.StreamReader | None, buffer: OutputBuffer):
    """Reads ``stream`` to EOF, keeping what fits in ``buffer``.

    Reading continues after the buffer is full so the child never blocks on
    a full pipe.
    """
    if stream is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(1024)
        if not chunk:
            break
        if buffer.full:
            continue
        buffer.append(decoder.decode(chunk))
    buffer.append(decoder.decode(b"", final=True))


async def spawn_detached(command: str, cwd: str | None = None) -> asyncio.subprocess.Process:
    """
    Starts ``command`` through the shell in its own session, so it keeps
    running independently of the request that launched it.
    """
    return await asyncio.create_subprocess_shell(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        start_new_session=True,
    )
