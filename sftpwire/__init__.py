"""Binary encoding of SFTP (secsh-filexfer) packets."""

__version__ = "0.1.0"

__all__ = ["codes", "encoding", "packets", "framing"]