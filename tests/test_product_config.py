from blueprint_core import product_config


def test_bool_config(monkeypatch):
    monkeypatch.setenv("BLUEPRINT_TEST_FLAG", "1")
    assert product_config._get_bool_config("BLUEPRINT_TEST_FLAG", False) is True
    monkeypatch.setenv("BLUEPRINT_TEST_FLAG", "Yes")
    assert product_config._get_bool_config("BLUEPRINT_TEST_FLAG", False) is True
    monkeypatch.setenv("BLUEPRINT_TEST_FLAG", "0")
    assert product_config._get_bool_config("BLUEPRINT_TEST_FLAG", True) is False
    monkeypatch.delenv("BLUEPRINT_TEST_FLAG")
    assert product_config._get_bool_config("BLUEPRINT_TEST_FLAG", True) is True


def test_int_config_enforces_minimum_and_ignores_garbage(monkeypatch):
    monkeypatch.setenv("BLUEPRINT_TEST_INT", "-5")
    assert product_config._get_int_config("BLUEPRINT_TEST_INT", 3, min_val=0) == 0
    monkeypatch.setenv("BLUEPRINT_TEST_INT", "lots")
    assert product_config._get_int_config("BLUEPRINT_TEST_INT", 3) == 3


def test_float_config(monkeypatch):
    monkeypatch.setenv("BLUEPRINT_TEST_FLOAT", "0.75")
    assert product_config._get_float_config("BLUEPRINT_TEST_FLOAT", 0.2) == 0.75
    monkeypatch.setenv("BLUEPRINT_TEST_FLOAT", "")
    assert product_config._get_float_config("BLUEPRINT_TEST_FLOAT", 0.2) == 0.2
