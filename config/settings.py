import os
from typing import Dict, Any, List


def _parse_periods(value: str) -> List[int]:
    return [int(p.strip()) for p in value.split(",") if p.strip()]


def get_rabbitmq_config() -> Dict[str, Any]:
    """Get RabbitMQ configuration from environment variables"""
    return {
        "host": os.getenv("RABBITMQ_HOST", "localhost"),
        "port": int(os.getenv("RABBITMQ_PORT", 5672)),
        "vhost": os.getenv("RABBITMQ_VHOST", "/"),
        "username": os.getenv("RABBITMQ_USERNAME", "guest"),
        "password": os.getenv("RABBITMQ_PASSWORD", "guest"),
        "queue_name": os.getenv("RABBITMQ_QUEUE", "timetable"),
        "heartbeat": int(os.getenv("RABBITMQ_HEARTBEAT", 600)),
        "connection_attempts": int(os.getenv("RABBITMQ_CONNECTION_ATTEMPTS", 3)),
        "retry_delay": int(os.getenv("RABBITMQ_RETRY_DELAY", 5)),
    }


def get_app_config() -> Dict[str, Any]:
    """Get application configuration from environment variables"""
    return {
        "debug": os.getenv("DEBUG", "False").lower() == "true",
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }


def get_generator_config() -> Dict[str, Any]:
    """Get allocation search parameters from environment variables"""
    seed = os.getenv("GENERATOR_SEED", "")
    return {
        "max_attempts": int(os.getenv("GENERATOR_MAX_ATTEMPTS", 10)),
        "min_attempts": int(os.getenv("GENERATOR_MIN_ATTEMPTS", 3)),
        "good_enough_score": float(os.getenv("GENERATOR_GOOD_ENOUGH_SCORE", 0.95)),
        "seed": int(seed) if seed else None,
        "randomize": os.getenv("GENERATOR_RANDOMIZE", "True").lower() == "true",
        "relax_workload_cap": os.getenv("GENERATOR_RELAX_WORKLOAD_CAP", "True").lower() == "true",
    }


def get_schedule_defaults() -> Dict[str, Any]:
    """Get default schedule settings, used when a request omits them"""
    return {
        "total_periods_per_day": int(os.getenv("SCHEDULE_PERIODS_PER_DAY", 10)),
        "lunch_period": int(os.getenv("SCHEDULE_LUNCH_PERIOD", 6)),
        "break_periods": _parse_periods(os.getenv("SCHEDULE_BREAK_PERIODS", "3,9")),
        "max_teacher_periods_per_week": int(os.getenv("SCHEDULE_MAX_TEACHER_PERIODS", 25)),
    }
