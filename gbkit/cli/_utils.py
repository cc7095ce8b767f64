import gbkit
from typing import List, Optional, Sequence, Union


def log_params(name, params):
    gbkit.logger.info(
        f"Received parameters: \n{name}\n  "
        + "\n  ".join(f"--{k}={v}" for k, v in params.items())
    )


def as_list(x: Optional[Union[str, Sequence]]) -> Optional[List[str]]:
    """Command line lists come as "a,b,c" or, once parsed by fire, as tuples"""
    if x is None:
        return None
    if isinstance(x, str):
        return [s.strip() for s in x.split(",") if len(s.strip()) > 0]
    return [str(s) for s in x]
