"""Error taxonomy for training and reporting runs."""


class LoginAnomalyError(Exception):
    """Base class for errors that abort a run."""


class ConfigError(LoginAnomalyError):
    """Invalid configuration value or settings file."""


class DataError(LoginAnomalyError):
    """Input file is missing, unreadable or malformed."""


class NoValidData(DataError):
    """No row of the input survived validation."""


class ModelError(LoginAnomalyError):
    """Fit failure, missing or corrupt artifact."""


class ModelNotFoundError(ModelError):
    """Requested model version does not exist in the store."""


class DimensionMismatchError(ModelError):
    """Encoded vectors do not match the width the model was fitted on."""


class InsufficientDataWarning(UserWarning):
    """
    Non-fatal shortage of data for a single detector or grouping key.

    Raised by the threshold calculator; callers catch it, report it and
    skip the affected detector while the rest of the run proceeds.
    """
