# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Shared CLI utilities for smevaluator
"""

import logging
import os
import sys
from typing import Optional


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for command-line use.

    Logs go to stderr so that stdout carries only the JSON result.
    Use SMEVAL_LOG_PROFILE=debug to keep per-method detail at INFO.
    """
    profile = os.getenv("SMEVAL_LOG_PROFILE", "prod").strip().lower()
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
        force=True,
    )

    # Registry loading is chatty at debug level only
    if profile != "debug" and numeric_level >= logging.INFO:
        logging.getLogger("smevaluator.domain.services.sector_registry").setLevel(logging.WARNING)
