import propbot.config as config_module
from propbot.config import Settings
from propbot.services.model_gateway import ModelGateway


def _settings(**overrides) -> Settings:
    cfg = Settings()
    cfg.LLM_API_KEY = ""
    for name, value in overrides.items():
        setattr(cfg, name, value)
    return cfg


def test_environment_file_is_loaded_once_by_the_package():
    assert not hasattr(config_module, "load_dotenv")


def test_request_timeout_covers_every_model_attempt():
    cfg = _settings(LLM_REQUEST_TIMEOUT=0, LLM_ATTEMPT_TIMEOUT=20, LLM_MODELS="a,b,c,d")
    assert cfg.llm_request_timeout == 80
    assert ModelGateway.from_settings(cfg).request_timeout == 80


def test_explicit_request_timeout_is_kept():
    cfg = _settings(LLM_REQUEST_TIMEOUT=45, LLM_ATTEMPT_TIMEOUT=20, LLM_MODELS="a,b,c,d")
    assert cfg.llm_request_timeout == 45


def test_request_timeout_with_no_models_is_one_attempt():
    cfg = _settings(LLM_REQUEST_TIMEOUT=0, LLM_ATTEMPT_TIMEOUT=20, LLM_MODELS=" , ")
    assert cfg.llm_request_timeout == 20
