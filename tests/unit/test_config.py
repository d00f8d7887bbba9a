import pytest
import json
from unittest.mock import Mock, patch

from botocore.exceptions import NoRegionError

from presigner.config import UploadConfig, load_secret_key
from presigner.errors import ConfigurationError


class TestUploadConfig:
    """Unit tests for environment-driven configuration"""

    def test_defaults(self, storage_env):
        config = UploadConfig.from_env(storage_env)

        assert config.endpoint == 'storage.example.com'
        assert config.bucket == 'uploads'
        assert config.use_ssl is False
        assert config.port is None
        assert config.region == 'us-east-1'
        assert config.expiry_seconds == 300
        assert config.cors_origin == '*'
        assert config.scheme == 'http'

    def test_optional_values(self, storage_env):
        storage_env.update({
            'MINIO_USE_SSL': 'true',
            'MINIO_PORT': '9000',
            'MINIO_REGION': 'eu-west-1',
            'EXPIRY_SECONDS': '900',
            'CORS_ORIGIN': 'https://app.example.com'
        })
        config = UploadConfig.from_env(storage_env)

        assert config.use_ssl is True
        assert config.scheme == 'https'
        assert config.port == 9000
        assert config.region == 'eu-west-1'
        assert config.expiry_seconds == 900
        assert config.cors_origin == 'https://app.example.com'

    def test_ssl_flag_requires_literal_true(self, storage_env):
        storage_env['MINIO_USE_SSL'] = 'TRUE'
        assert UploadConfig.from_env(storage_env).use_ssl is False

    def test_missing_variables_are_all_named(self, storage_env):
        del storage_env['MINIO_BUCKET']
        storage_env['MINIO_SECRET_KEY'] = ''

        with pytest.raises(ConfigurationError) as exc_info:
            UploadConfig.from_env(storage_env)

        assert exc_info.value.message == \
            'Missing required environment variables: MINIO_BUCKET, MINIO_SECRET_KEY'
        assert exc_info.value.status_code == 500

    @pytest.mark.parametrize('value', ['abc', '0', '-10', ''])
    def test_unusable_expiry_falls_back_to_default(self, storage_env, value):
        storage_env['EXPIRY_SECONDS'] = value
        assert UploadConfig.from_env(storage_env).expiry_seconds == 300

    def test_expiry_above_sigv4_maximum(self, storage_env):
        storage_env['EXPIRY_SECONDS'] = str(7 * 24 * 3600 + 1)
        with pytest.raises(ConfigurationError):
            UploadConfig.from_env(storage_env)

    @pytest.mark.parametrize('value', ['http', '70000'])
    def test_bad_port(self, storage_env, value):
        storage_env['MINIO_PORT'] = value
        with pytest.raises(ConfigurationError):
            UploadConfig.from_env(storage_env)

    def test_repr_hides_secret(self, storage_env):
        config = UploadConfig.from_env(storage_env)
        assert storage_env['MINIO_SECRET_KEY'] not in repr(config)

    def test_secret_key_from_secrets_manager(self, storage_env):
        del storage_env['MINIO_SECRET_KEY']
        storage_env['MINIO_SECRET_KEY_SECRET_NAME'] = 'storage-secret'
        secrets_client = Mock()
        secrets_client.get_secret_value.return_value = {
            'SecretString': json.dumps({'secret_key': 'from-secrets-manager'})
        }

        config = UploadConfig.from_env(storage_env, secrets_client=secrets_client)

        assert config.secret_key == 'from-secrets-manager'
        secrets_client.get_secret_value.assert_called_once_with(SecretId='storage-secret')

    def test_explicit_secret_key_wins(self, storage_env):
        storage_env['MINIO_SECRET_KEY_SECRET_NAME'] = 'storage-secret'
        secrets_client = Mock()

        config = UploadConfig.from_env(storage_env, secrets_client=secrets_client)

        assert config.secret_key == storage_env['MINIO_SECRET_KEY']
        secrets_client.get_secret_value.assert_not_called()


class TestLoadSecretKey:
    """Unit tests for Secrets Manager lookups"""

    def _client(self, secret_string):
        client = Mock()
        client.get_secret_value.return_value = {'SecretString': secret_string}
        return client

    def test_plain_secret_string(self):
        assert load_secret_key('name', self._client('plain-key')) == 'plain-key'

    def test_numeric_secret_string(self):
        assert load_secret_key('name', self._client('12345')) == '12345'

    def test_json_without_field(self):
        with pytest.raises(ConfigurationError):
            load_secret_key('name', self._client(json.dumps({'other': 'x'})))

    def test_client_construction_failure(self):
        with patch('presigner.config.boto3.client', side_effect=NoRegionError()):
            with pytest.raises(ConfigurationError) as exc_info:
                load_secret_key('storage-secret')

        assert 'storage-secret' in exc_info.value.message

    def test_lookup_failure(self):
        client = Mock()
        client.get_secret_value.side_effect = Exception('AccessDenied')

        with pytest.raises(ConfigurationError) as exc_info:
            load_secret_key('name', client)

        assert 'AccessDenied' in exc_info.value.message
