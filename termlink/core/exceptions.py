"""
Unified exception definitions
"""


class TermlinkError(Exception):
    """Base exception class"""
    pass


class ConfigError(TermlinkError):
    """Configuration error"""
    pass


class TransportError(TermlinkError):
    """Transport I/O error"""
    pass


class NotConnectedError(TransportError):
    """Operation requires an open connection"""
    pass


class AlreadyConnectedError(TransportError):
    """Connect called on an open connection"""
    pass


class HandshakeError(TransportError):
    """Connection setup failed"""
    pass


class AuthenticationError(HandshakeError):
    """SSH authentication failed"""
    pass


class HostKeyRejectedError(HandshakeError):
    """SSH host key was not accepted"""
    pass


class ChannelError(TermlinkError):
    """Channel error"""
    pass


class ChannelClosed(ChannelError):
    """Channel is closed"""
    pass


class ChannelFull(ChannelError):
    """Channel is at capacity"""
    pass


class ChannelEmpty(ChannelError):
    """Channel has nothing buffered"""
    pass
