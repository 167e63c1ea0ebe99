"""Services: device registry, time-series sink, collection cycle, scheduler, system log."""
