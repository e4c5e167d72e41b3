"""
Pytest configuration for unit tests.

Provides fixtures that apply to all unit tests.
"""

import pytest


@pytest.fixture(autouse=True, scope="function")
def reset_config_singletons(monkeypatch):
    """
    Reset cached configuration for EVERY unit test.

    get_app_config() and get_record_markers() cache their first result;
    tests that patch environment variables need a fresh load.
    """
    monkeypatch.setattr('esf_json.config._app_config', None)
    monkeypatch.setattr('esf_json.config._record_markers', None)
    yield


@pytest.fixture
def army_xml() -> bytes:
    """Army record with military force, footer scalars and a <no/> marker."""
    return (
        b'<rec type="ARMY">'
        b'<rec type="MILITARY_FORCE"><u>7</u><u>12</u></rec>'
        b'<i>7</i><u>3</u><no/>'
        b'</rec>'
    )


@pytest.fixture
def army_with_units_xml() -> bytes:
    """Army record whose units sit under an intermediate wrapper."""
    return b"""<?xml version="1.0" encoding="UTF-8"?>
<rec type="ARMY">
  <rec type="MILITARY_FORCE">
    <u>101</u>
    <u>2002</u>
  </rec>
  <ary type="UNITS_ARRAY">
    <!-- first unit is wrapped -->
    <rec>
      <land_unit id="042" name="Gardes Francaises" men="-5" exp="4.2"/>
    </rec>
    <land_unit id="43" name="Dragoons" men="+3"/>
  </ary>
  <i>101</i>
  <u>17</u>
  <u>909</u>
</rec>
"""
