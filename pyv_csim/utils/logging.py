import logging

def get_logger(name: str = "pyv_csim"):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    return logging.getLogger(name)


def set_verbose(verbose: bool, name: str = "pyv_csim"):
    """Turns per-access DEBUG output of the simulator on or off."""
    get_logger(name).setLevel(logging.DEBUG if verbose else logging.INFO)
