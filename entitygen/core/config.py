from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ENTITYGEN_", extra="ignore")

    app_name: str = "entitygen"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    # Root of the target source tree that generated files are written into
    output_dir: str = "."
    entities_dir: str = "app/entities"
    inputs_dir: str = "app/inputs"
    operations_dir: str = "app/api/entities"
    generated_dirname: str = "generated"
    # Module the generated files import field_column, field_input, EntityRepository... from
    runtime_module: str = "app.runtime"

    force: bool = False
    dry_run: bool = False

settings = Settings()
