"""Application constants."""

USER_AGENT = "ham-station-geocoder/1.0"
GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GEOCODE_MAX_ATTEMPTS = 5
COMMANDS = (
    "init-db",
    "import",
    "geocode",
    "copy-duplicates",
    "all",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
ENV_GEOCODE_KEY = "HAM_STATION_GOOGLE_GEOCODE_KEY"
ENV_DATABASE_URL = "HAM_STATION_DATABASE_URL"
STATION_CSV_COLUMNS = (
    "callsign",
    "address_line1",
    "locality",
    "administrative_area",
    "postal_code",
    "country_code",
)
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "callsign",
    "attempt",
    "error_code",
    "message",
)
