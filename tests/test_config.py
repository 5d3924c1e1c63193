"""
UTXOLedger - Configuration Tests
==================================
"""

import pytest
from pydantic import ValidationError

from utxo_ledger.config import LedgerSettings, override_settings, validate_config
from utxo_ledger.errors import InvalidConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Ignore database URLs set in the outer environment"""
    for name in ("UTXOLEDGER_DATABASE_URL", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)


class TestLedgerSettings:
    """Test LedgerSettings"""
    
    def test_default_database_url_in_data_dir(self, temp_data_dir):
        config = LedgerSettings(_env_file=None, data_dir=temp_data_dir)
        
        assert config.database_url.startswith("sqlite:///")
        assert config.database_url.endswith("utxoledger.db")
        assert config.is_sqlite()
    
    def test_env_prefix(self, monkeypatch, temp_data_dir):
        monkeypatch.setenv("UTXOLEDGER_API_PORT", "8080")
        monkeypatch.setenv("UTXOLEDGER_DATA_DIR", str(temp_data_dir))
        
        assert LedgerSettings(_env_file=None).api_port == 8080
    
    def test_plain_database_url_env(self, monkeypatch, temp_data_dir):
        monkeypatch.delenv("UTXOLEDGER_DATABASE_URL", raising=False)
        monkeypatch.setenv("DATABASE_URL", "postgresql://ledger@localhost/ledger")
        
        config = LedgerSettings(_env_file=None, data_dir=temp_data_dir)
        
        assert config.database_url == "postgresql://ledger@localhost/ledger"
        assert not config.is_sqlite()
    
    def test_default_port(self, temp_data_dir):
        assert LedgerSettings(_env_file=None, data_dir=temp_data_dir).api_port == 3000
    
    def test_log_level_normalized(self, temp_data_dir):
        config = LedgerSettings(_env_file=None, data_dir=temp_data_dir, log_level="debug")
        
        assert config.log_level == "DEBUG"
    
    def test_invalid_log_level(self, temp_data_dir):
        with pytest.raises(ValidationError):
            LedgerSettings(_env_file=None, data_dir=temp_data_dir, log_level="LOUD")
    
    def test_invalid_log_format(self, temp_data_dir):
        with pytest.raises(ValidationError):
            LedgerSettings(_env_file=None, data_dir=temp_data_dir, log_format="xml")
    
    def test_override_settings(self, temp_data_dir):
        config = override_settings(data_dir=temp_data_dir, log_to_file=False)
        
        assert config.log_to_file is False
    
    def test_validate_config(self, test_config):
        valid, errors = validate_config(test_config)
        
        assert valid, errors
    
    def test_validate_config_cors_without_origins(self, temp_data_dir):
        config = LedgerSettings(
            _env_file=None,
            data_dir=temp_data_dir,
            api_enable_cors=True,
            api_cors_origins=[]
        )
        
        valid, errors = validate_config(config)
        
        assert not valid
        assert any("api_cors_origins" in e for e in errors)
    
    def test_validate_config_strict_raises(self, temp_data_dir):
        config = LedgerSettings(
            _env_file=None,
            data_dir=temp_data_dir,
            api_enable_cors=True,
            api_cors_origins=[]
        )
        
        with pytest.raises(InvalidConfigError) as exc_info:
            validate_config(config, strict=True)
        
        assert exc_info.value.code == "INVALID_CONFIG"
