from cli import cli
from config.settings import load_settings
from utils.logger_utils import configure_logging, get_logger

settings = load_settings()
configure_logging(filename=settings.app.log_file, log_level=settings.app.log_level)
logger = get_logger("Run Entry Point")

if __name__ == "__main__":
    cli()
