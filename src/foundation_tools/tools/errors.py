class ToolError(Exception):
    """Base class for tool failures that are reported back to the model as results."""

    default_message = "Tool execution failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class WebSearchError(ToolError):
    default_message = "Web search request failed"

    @classmethod
    def empty_query(cls) -> "WebSearchError":
        return cls("Search query cannot be empty")

    @classmethod
    def missing_api_key(cls) -> "WebSearchError":
        return cls("Exa API key is required. Set EXA_API_KEY in the environment.")

    @classmethod
    def no_results(cls) -> "WebSearchError":
        return cls("No search results found")

    @classmethod
    def invalid_response(cls) -> "WebSearchError":
        return cls("Search API returned a response that is not valid JSON")


class WebMetadataError(ToolError):
    default_message = "Failed to fetch metadata"

    @classmethod
    def empty_url(cls) -> "WebMetadataError":
        return cls("URL cannot be empty")

    @classmethod
    def invalid_url(cls) -> "WebMetadataError":
        return cls("Invalid URL format: must be an http or https URL")

    @classmethod
    def fetch_failed(cls, reason: object) -> "WebMetadataError":
        return cls(f"Failed to fetch metadata: {reason}")


class WeatherError(ToolError):
    default_message = "Weather request failed"

    @classmethod
    def empty_location(cls) -> "WeatherError":
        return cls("Location cannot be empty")

    @classmethod
    def location_not_found(cls, location: str) -> "WeatherError":
        return cls(f"Location not found: {location}")

    @classmethod
    def invalid_units(cls, units: str) -> "WeatherError":
        return cls(f"Invalid units {units!r}: use 'celsius' or 'fahrenheit'")

    @classmethod
    def invalid_response(cls, service: str) -> "WeatherError":
        return cls(f"{service} returned a response that is not valid JSON")
