import pytest

from patchpair.config import DEFAULT_TIMEOUT, DEFAULT_WORKER_URL, load_config


def test_defaults():
    cfg = load_config({})
    assert cfg.worker_url == DEFAULT_WORKER_URL
    assert cfg.timeout == DEFAULT_TIMEOUT
    assert cfg.log_dir is None


def test_environment_overrides():
    cfg = load_config({'PATCHPAIR_WORKER_URL': 'https://worker.example/ ',
                       'PATCHPAIR_TIMEOUT': '15',
                       'PATCHPAIR_LOG_DIR': '/tmp/pp'})
    assert cfg.worker_url == 'https://worker.example'
    assert cfg.timeout == 15.0
    assert cfg.log_dir == '/tmp/pp'


@pytest.mark.parametrize('value', ['soon', '0', '-3'])
def test_bad_timeout(value):
    with pytest.raises(ValueError):
        load_config({'PATCHPAIR_TIMEOUT': value})
