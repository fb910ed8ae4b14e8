import logging  # noqa: D100


def setup_logger(debug: bool) -> logging.Logger:
    """Configure root logging for a host embedding the viewmodel core."""
    log_level = "DEBUG" if debug else "INFO"
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s:%(lineno)d | %(message)s",
    )
    logger = logging.getLogger(__name__)

    # Per-tick telemetry is only useful when debugging
    if debug:
        logging.getLogger("viewmodel_motion.frame_clock").setLevel(logging.DEBUG)
        logging.getLogger("viewmodel_motion.integrator").setLevel(logging.DEBUG)
    else:
        logging.getLogger("viewmodel_motion.frame_clock").setLevel(logging.INFO)
        logging.getLogger("viewmodel_motion.integrator").setLevel(logging.INFO)
    return logger
