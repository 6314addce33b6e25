"""Exception hierarchy for the risk engine and its weather provider boundary."""


class CropRiskError(Exception):
    """Base class for all errors raised by croprisk."""


class MalformedSeriesError(CropRiskError):
    """Daily weather data is empty, ambiguous, or cannot be normalized."""


class EmptyForecastError(CropRiskError):
    """Partitioning left no days on or after the reference date."""


class WeatherProviderError(CropRiskError):
    """The upstream weather provider could not be reached or returned an error."""
