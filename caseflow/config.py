import yaml
import os
from typing import Optional
from pydantic import BaseModel
from dotenv import load_dotenv

# 載入 .env 檔案（如果存在）
load_dotenv()


class AppConfig(BaseModel):
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 9999
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, fallback: 'AppConfig' = None) -> 'AppConfig':
        """從環境變數載入設定，如果環境變數為空則使用 fallback"""
        return cls(
            debug=os.getenv('DEBUG', str(fallback.debug).lower() if fallback else 'false').lower() == 'true',
            host=os.getenv('HOST', fallback.host if fallback else '0.0.0.0'),
            port=int(os.getenv('PORT', str(fallback.port) if fallback else '9999')),
            log_level=os.getenv('LOG_LEVEL', fallback.log_level if fallback else 'INFO').upper(),
        )


class StorageConfig(BaseModel):
    """用例儲存設定"""
    # sqlite | json | memory
    backend: str = "sqlite"
    database_url: str = "sqlite+aiosqlite:///./caseflow.db"
    json_path: str = "settings.dat"
    cases_key: str = "testcases_advanced"
    groups_key: str = "testcase_groups"

    @classmethod
    def from_env(cls, fallback: 'StorageConfig' = None) -> 'StorageConfig':
        return cls(
            backend=os.getenv('STORAGE_BACKEND', fallback.backend if fallback else 'sqlite').lower(),
            database_url=os.getenv(
                'STORAGE_DATABASE_URL',
                fallback.database_url if fallback else 'sqlite+aiosqlite:///./caseflow.db'
            ),
            json_path=os.getenv('STORAGE_JSON_PATH', fallback.json_path if fallback else 'settings.dat'),
            cases_key=fallback.cases_key if fallback else 'testcases_advanced',
            groups_key=fallback.groups_key if fallback else 'testcase_groups',
        )


class ExportConfig(BaseModel):
    # 若留空，則預設使用目前目錄下的 generated_export
    output_dir: str = ""
    mermaid_cdn_url: str = "https://cdn.jsdelivr.net/npm/mermaid/dist/mermaid.min.js"

    @classmethod
    def from_env(cls, fallback: 'ExportConfig' = None) -> 'ExportConfig':
        env_dir = os.getenv('EXPORT_OUTPUT_DIR')
        return cls(
            output_dir=env_dir if env_dir else (fallback.output_dir if fallback else ''),
            mermaid_cdn_url=os.getenv(
                'MERMAID_CDN_URL',
                fallback.mermaid_cdn_url if fallback else ExportConfig().mermaid_cdn_url
            ),
        )

    def resolve_output_dir(self) -> str:
        return self.output_dir or os.path.join(os.getcwd(), "generated_export")


class RendererConfig(BaseModel):
    """流程圖渲染服務設定（mermaid.ink 相容）"""
    base_url: str = "https://mermaid.ink"
    timeout: int = 15

    @classmethod
    def from_env(cls, fallback: 'RendererConfig' = None) -> 'RendererConfig':
        return cls(
            base_url=os.getenv('MERMAID_RENDER_URL', fallback.base_url if fallback else 'https://mermaid.ink'),
            timeout=int(os.getenv('MERMAID_RENDER_TIMEOUT', str(fallback.timeout if fallback else 15))),
        )


class Settings(BaseModel):
    app: AppConfig = AppConfig()
    storage: StorageConfig = StorageConfig()
    export: ExportConfig = ExportConfig()
    renderer: RendererConfig = RendererConfig()

    @classmethod
    def from_env_and_file(cls, config_path: Optional[str] = None) -> 'Settings':
        """從環境變數和 YAML 檔案載入設定（環境變數優先）"""
        config_path = config_path or os.getenv('CASEFLOW_CONFIG', 'config.yaml')
        # 先載入檔案設定
        if os.path.exists(config_path):
            with open(config_path, 'r', encoding='utf-8') as file:
                config_data = yaml.safe_load(file) or {}
            base_settings = cls(**config_data)
        else:
            base_settings = cls()

        # 環境變數覆蓋檔案設定（僅當環境變數存在時）
        return cls(
            app=AppConfig.from_env(base_settings.app),
            storage=StorageConfig.from_env(base_settings.storage),
            export=ExportConfig.from_env(base_settings.export),
            renderer=RendererConfig.from_env(base_settings.renderer),
        )


def create_default_config(config_path: str = "config.yaml") -> None:
    """建立預設設定檔"""
    default_config = {
        "app": {
            "debug": False,
            "host": "0.0.0.0",
            "port": 9999,
            "log_level": "INFO",
        },
        "storage": {
            "backend": "sqlite",
            "database_url": "sqlite+aiosqlite:///./caseflow.db",
            "json_path": "settings.dat",
            "cases_key": "testcases_advanced",
            "groups_key": "testcase_groups",
        },
        "export": {
            "output_dir": "",  # 留空代表使用 ./generated_export
            "mermaid_cdn_url": ExportConfig().mermaid_cdn_url,
        },
        "renderer": {
            "base_url": "https://mermaid.ink",
            "timeout": 15,
        },
    }

    with open(config_path, 'w', encoding='utf-8') as file:
        yaml.dump(default_config, file, default_flow_style=False, allow_unicode=True)


# 全域設定實例
settings = Settings.from_env_and_file()
