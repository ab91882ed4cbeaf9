from vitals_lab.api.controls import LatestTemperature, LedState


def test_led_defaults_off_and_toggles():
    led = LedState()
    assert led.get() is False
    assert led.set(1) is True
    assert led.get() is True
    assert led.set(False) is False


def test_latest_temperature():
    temperature = LatestTemperature()
    assert temperature.get() is None
    temperature.set(21.5)
    temperature.set(22.0)
    assert temperature.get() == 22.0
