"""Pure helpers: opening-hours math, calendar layout and distances. No I/O."""
