"""
Exceptions raised while building and sending HipChat room messages.
"""


class HipChatError(Exception):
    pass


class MissingRequiredField(HipChatError):
    """
    Raised when one or more required options are absent after all option sources are merged.
    """
    def __init__(self, fields):
        self.fields = list(fields)
        self.message = "Missing required option(s): {}".format(", ".join(self.fields))
        super().__init__(self.message)

    def __str__(self):
        return self.message


class InvalidOption(HipChatError):
    pass


class ConfigFileError(HipChatError):
    pass


class TransportError(HipChatError):
    """
    Raised when the HTTPS request could not be completed.
    """
    pass
