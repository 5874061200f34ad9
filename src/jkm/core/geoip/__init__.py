"""Country-code geolocation integration."""
