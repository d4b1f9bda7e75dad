"""Static resources shipped with the package."""
