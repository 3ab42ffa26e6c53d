import pytest

from tests.helpers import make_interaction, make_text_channel


@pytest.fixture
def text_channel():
    return make_text_channel()


@pytest.fixture
def interaction(text_channel):
    return make_interaction(channel=text_channel)
