"""
Exceptions for KeyWallet
Everything raised on purpose derives from WalletError so the CLI has one thing to catch.
I/O problems are not wrapped; OSError reaches the caller unchanged.
"""


class WalletError(Exception):
    # general container for errors
    pass


class ContainerFormatError(WalletError):
    # raised when a wallet file is too short to hold salt and nonce
    def __init__(self, message: str = "corrupted file"):
        super().__init__(message)


class AuthenticationError(WalletError):
    # raised when the AEAD tag does not verify (wrong password or tampering)
    def __init__(self, message: str = "incorrect password or corrupted data"):
        super().__init__(message)


class MalformedRecordError(WalletError):
    # raised when decrypted plaintext cannot be parsed into entries
    pass


class InvalidEntryError(WalletError):
    # raised when a key or value cannot be stored in the chosen encoding
    pass


class EntryNotFoundError(WalletError, KeyError):
    # raised when a key DNE in the wallet
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"not found {self.key}"


class ClipboardError(WalletError):
    # raised when the system clipboard cannot be written
    pass


class ConfigurationError(WalletError):
    # raised on invalid env or command line settings
    pass
