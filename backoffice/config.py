from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    api_base_url: str = 'http://localhost:8080/api'
    auth_base_url: str = 'http://localhost:9000'
    tenant_id: str = 'X'
    upstream_timeout_seconds: int = 30
    owner_party_id: str = 'FRESH_MART_DC'

    session_cookie_name: str = 'auth-token'
    session_cookie_secure: bool = False
    principal_cache_ttl_seconds: int = 300
    principal_path: str = '/api/users/current'
    workspace_ttl_seconds: int = 3600
    admin_username: str = 'admin'

    default_page_size: int = 20
    page_size_options: tuple[int, ...] = (10, 20, 30, 40, 50)
    fetch_page_size: int = 9999
    lookup_cache_ttl_seconds: int = 120 * 60

    log_level: str = 'INFO'

    @property
    def api_base_url_normalized(self) -> str:
        return self.api_base_url.strip().rstrip('/')

    @property
    def auth_base_url_normalized(self) -> str:
        return self.auth_base_url.strip().rstrip('/')


settings = Settings()
