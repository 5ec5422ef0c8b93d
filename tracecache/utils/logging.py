
import logging
def get_logger(name:str="tracecache"):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    return logging.getLogger(name)

def set_verbose(verbose: bool):
    logging.getLogger("tracecache").setLevel(logging.DEBUG if verbose else logging.INFO)
