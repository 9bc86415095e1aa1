"""Exception hierarchy for parsing, resolution scope, and artifact persistence"""


class VaultpubError(Exception):
    """Base class for all errors raised by vaultpub."""


class ParseError(VaultpubError):
    """A document's header or footer holds malformed structured data.

    Scanners raise without a path; the parser attaches the source path
    before the error leaves the document boundary.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class HeaderParseError(ParseError):
    """The leading YAML block is invalid or not a mapping."""


class FooterParseError(ParseError):
    """The trailing settings fence does not contain a JSON object."""


class PersistenceError(VaultpubError):
    """Reading or writing a vault file failed."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class NotInBaseFolderError(VaultpubError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File is not inside a configured base folder: {path}")


class SnapshotSourceError(VaultpubError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Cannot generate AST for snapshot files: {path}")
