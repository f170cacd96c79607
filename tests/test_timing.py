from streamads.timing import SlotTiming, detect_mobile


def test_detect_mobile_by_user_agent_or_viewport():
    assert detect_mobile("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", 1280)
    assert detect_mobile("Mozilla/5.0 (Linux; Android 14)", None)
    assert detect_mobile("Mozilla/5.0 (X11; Linux x86_64)", 768)
    assert not detect_mobile("Mozilla/5.0 (X11; Linux x86_64)", 769)
    assert not detect_mobile(None, None)


def test_platform_delays():
    desktop = SlotTiming.for_platform(False)
    mobile = SlotTiming.for_platform(True)
    assert (desktop.move_delay_ms, desktop.check_delay_ms) == (200, 3000)
    assert (mobile.move_delay_ms, mobile.check_delay_ms) == (500, 4000)
    assert (desktop.retry_move_delay_ms, desktop.retry_check_delay_ms) == (400, 600)
    assert (mobile.retry_move_delay_ms, mobile.retry_check_delay_ms) == (1000, 1500)
    assert desktop.max_retries == 3
    assert desktop.recheck_delay_ms == 1000
    assert desktop.rotation_interval_ms == 5000
