# Copyright 2021 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Logging configuration for simulation scripts.

Every module logs through `logging.getLogger(__name__)`, so all records of
the package sit under the `viscous_ib` logger. `setup_logging` attaches the
handlers to that logger once, typically from the `__main__` block of a
tutorial. It can also ask JAX to report each compilation of a jitted step
function, which is where a long first step usually goes.
"""
import logging
import sys
from typing import Optional

import jax

PACKAGE_LOGGER = "viscous_ib"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_compiles: bool = False,
) -> logging.Logger:
    """
    Sends the records of the package to stdout and, optionally, a file.

    Args:
        level: threshold for the package loggers, e.g. `logging.DEBUG` to
            see every time step.
        log_file: path of a log file, overwritten on each call.
        log_compiles: have JAX log every compilation (the `jax_log_compiles`
            flag); handy to spot a step function that recompiles.

    Returns:
        The package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    # Records stop here so a configured root logger does not print them twice.
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    jax.config.update("jax_log_compiles", log_compiles)
    logger.debug("Logging to %s", log_file or "stdout")
    return logger
