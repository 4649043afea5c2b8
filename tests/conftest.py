"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys

import pytest

# Make the package and the test helpers importable without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from fakes import FakeEngine, JACK_FPR, JILL_FPR, make_key


@pytest.fixture
def keys():
    return {
        JACK_FPR: make_key(JACK_FPR, 'Jack <jack@hill.org>'),
        JILL_FPR: make_key(
            JILL_FPR, 'Jill <jill@hill.org>', 'Jill Hill <jill@work.org>'),
        }


@pytest.fixture
def engine(keys):
    return FakeEngine(keys=keys)
