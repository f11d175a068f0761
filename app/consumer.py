import json
import logging
import pika
import time
from dataclasses import asdict
from typing import Dict, Any, List

from config.settings import get_app_config, get_generator_config, get_rabbitmq_config, get_schedule_defaults
from app.services.generator import generate_timetables
from app.models.generator_config import GeneratorConfig
from app.models.schedule_settings import ScheduleSettings
from app.models.subject_requirement import SubjectRequirement
from app.models.teacher_preference import TeacherPreference
from app.models.timetable_data import TimetableData
from app.utils.csv_io import parse_subject_csv, timetables_to_csv
from app.utils.validation import InvalidTimetableInput

logger = logging.getLogger(__name__)

GENERATOR_OPTIONS = (
    "max_attempts", "min_attempts", "good_enough_score", "seed", "randomize", "relax_workload_cap",
)


def _field(row: Dict[str, Any], name: str, label: str) -> Any:
    value = row.get(name)
    if value is None or str(value).strip() == "":
        raise InvalidTimetableInput(f"{label}: missing {name}")
    return value


def _to_int(value: Any, name: str, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidTimetableInput(f"{label}: invalid {name} value {value!r}")


def _optional_int(row: Dict[str, Any], name: str, label: str):
    value = row.get(name)
    if value is None or str(value).strip() == "":
        return None
    return _to_int(value, name, label)


def parse_timetable_data(data: Dict[str, Any]) -> TimetableData:
    """
    Converts JSON data received from RabbitMQ into TimetableData structure.

    Args:
        data: Dictionary with the subject rows, preferences and settings

    Expected format:
    {
        "subjects": [{"department": "CS", "year": "2", "section": "A", "subject": "Mathematics",
                      "periods": 5, "staff": "Dr. Rao", "preferred_day": "Monday",
                      "preferred_period": 1}, ...],
        "subjects_csv": "department,year,section,subject,periods,staff\\n...",  # instead of "subjects"
        "teacher_preferences": [{"teacher_name": "Dr. Rao", "preferred_day": "Tuesday",
                                 "preferred_period": 2, "department": "CS", "year": "2",
                                 "section": "A"}, ...],
        "settings": {"total_periods_per_day": 10, "lunch_period": 6, "break_periods": [3, 9],
                     "max_teacher_periods_per_week": 25}
    }

    Returns:
        Processed TimetableData

    Raises:
        InvalidTimetableInput: if a row is missing a field or holds a non-numeric number
    """
    # Parse SubjectRequirements
    if data.get("subjects_csv"):
        subjects = parse_subject_csv(data["subjects_csv"])
    else:
        subjects = []
        for index, row in enumerate(data.get("subjects", []), start=1):
            label = f"Subject row {index}"
            subjects.append(SubjectRequirement(
                department=str(_field(row, "department", label)).strip(),
                year=str(_field(row, "year", label)).strip(),
                section=str(_field(row, "section", label)).strip(),
                subject=str(_field(row, "subject", label)).strip(),
                periods=_to_int(_field(row, "periods", label), "periods", label),
                staff=str(_field(row, "staff", label)).strip(),
                preferred_day=row.get("preferred_day") or None,
                preferred_period=_optional_int(row, "preferred_period", label)
            ))

    # Parse TeacherPreferences
    teacher_preferences = []
    for index, pref in enumerate(data.get("teacher_preferences", []), start=1):
        label = f"Teacher preference {index}"
        teacher_preferences.append(TeacherPreference(
            teacher_name=str(_field(pref, "teacher_name", label)).strip(),
            preferred_day=str(_field(pref, "preferred_day", label)).strip(),
            preferred_period=_to_int(_field(pref, "preferred_period", label), "preferred_period", label),
            department=pref.get("department") or None,
            year=pref.get("year") or None,
            section=pref.get("section") or None
        ))

    # Parse ScheduleSettings on top of the configured defaults
    settings_data = get_schedule_defaults()
    settings_data.update(data.get("settings") or {})
    label = "Settings"
    settings = ScheduleSettings(
        total_periods_per_day=_to_int(settings_data["total_periods_per_day"], "total_periods_per_day", label),
        lunch_period=_to_int(settings_data["lunch_period"], "lunch_period", label),
        break_periods=[_to_int(p, "break_periods", label) for p in settings_data.get("break_periods") or []],
        max_teacher_periods_per_week=_to_int(
            settings_data["max_teacher_periods_per_week"], "max_teacher_periods_per_week", label
        )
    )

    return TimetableData(
        subjects=subjects,
        teacher_preferences=teacher_preferences,
        settings=settings
    )


def parse_generator_config(options: Dict[str, Any]) -> GeneratorConfig:
    """Builds the search parameters from the environment, overridden by request options"""
    values = get_generator_config()
    for name in GENERATOR_OPTIONS:
        if name in (options or {}):
            values[name] = options[name]
    return GeneratorConfig(verbose=get_app_config()["debug"], **values)


def serialize_timetables(timetables, name_field: str) -> List[Dict[str, Any]]:
    return [
        {
            name_field: getattr(timetable, name_field),
            "schedule": [[asdict(slot) for slot in day] for day in timetable.schedule],
        }
        for timetable in timetables
    ]


def serialize_report(report) -> Dict[str, Any]:
    return {
        "allocations": [
            {
                "subject_key": allocation.subject_key,
                "subject": allocation.subject,
                "class_name": allocation.class_name,
                "allocated_periods": allocation.allocated_periods,
                "required_periods": allocation.required_periods,
            }
            for allocation in report.allocations
        ],
        "total_required": report.total_required,
        "total_allocated": report.total_allocated,
        "success_rate": round(report.success_rate, 2),
        "shortfalls": [asdict(shortfall) for shortfall in report.shortfalls],
        "over_allocated": report.over_allocated,
        "cap_exceeded": report.cap_exceeded,
        "relaxed_placements": report.relaxed_placements,
        "attempts": report.attempts,
        "score": report.score,
    }


def process_generate_timetable(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Processes timetable generation request.

    Args:
        data: Subject rows, preferences, settings and optional "options"

    Returns:
        Dictionary with generation result
    """
    try:
        logger.info("Starting timetable generation...")

        timetable_data = parse_timetable_data(data)
        options = data.get("options") or {}
        config = parse_generator_config(options)

        logger.info(f"Data parsed: {len(timetable_data.subjects)} subject rows, "
                    f"{len(timetable_data.class_names)} classes, "
                    f"{len(timetable_data.teacher_names)} teachers")

        result = generate_timetables(timetable_data, config)
        report = result.report

        from app.utils.costs import hard_constraints_cost, empty_space_classes_cost, empty_space_teachers_cost
        settings = timetable_data.settings
        hard_cost, cost_calendar, cost_teacher, cost_mirror, cost_lab = hard_constraints_cost(
            result.class_timetables, result.teacher_timetables, settings
        )
        classes_cost, max_empty_class, avg_empty_classes = empty_space_classes_cost(
            result.class_timetables, settings)
        teachers_cost, max_empty_teacher, avg_empty_teachers = empty_space_teachers_cost(
            result.teacher_timetables, settings)

        logger.info(f"Generation completed. Success rate: {report.success_rate:.1f}%, "
                    f"hard constraints cost: {hard_cost}")

        response_data = {
            "class_timetables": serialize_timetables(result.class_timetables, "class_name"),
            "teacher_timetables": serialize_timetables(result.teacher_timetables, "teacher_name"),
            "allocation_report": serialize_report(report),
            "statistics": {
                "hard_constraints_satisfied": hard_cost == 0,
                "hard_constraints_cost": hard_cost,
                "hard_constraints_breakdown": {
                    "calendar": cost_calendar,
                    "teachers": cost_teacher,
                    "mirror": cost_mirror,
                    "labs": cost_lab,
                },
                "classes_empty_space": {
                    "total": classes_cost,
                    "max_per_day": max_empty_class,
                    "average_per_week": avg_empty_classes
                },
                "teachers_empty_space": {
                    "total": teachers_cost,
                    "max_per_day": max_empty_teacher,
                    "average_per_week": avg_empty_teachers
                }
            }
        }

        if options.get("include_csv"):
            class_csv, teacher_csv = timetables_to_csv(result.class_timetables, result.teacher_timetables)
            response_data["exports"] = {"class_csv": class_csv, "teacher_csv": teacher_csv}

        message = ("All periods allocated" if report.is_complete
                   else f"{len(report.shortfalls)} subject(s) could not be fully allocated")
        return {
            "status": "success",
            "message": message,
            "data": response_data
        }

    except InvalidTimetableInput as e:
        logger.warning(f"Invalid timetable input: {e}")
        return {
            "status": "error",
            "message": f"Invalid input: {str(e)}"
        }

    except Exception as e:
        logger.error(f"Error generating timetable: {e}", exc_info=True)
        return {
            "status": "error",
            "message": f"Error generating timetable: {str(e)}"
        }


def publish_reply(ch, properties, result: Dict[str, Any]):
    """Sends the result to the reply queue of the request, if any"""
    if not properties.reply_to:
        return
    ch.basic_publish(
        exchange="",
        routing_key=properties.reply_to,
        properties=pika.BasicProperties(correlation_id=properties.correlation_id),
        body=json.dumps(result),
    )


def callback(ch, method, properties, body):
    """Message callback - processes one request and acknowledges it"""
    correlation_id = properties.correlation_id

    try:
        logger.info(f"Received message: {correlation_id}")
        message = json.loads(body)
        command = message.get("pattern")

        if command == "test_connection":
            publish_reply(ch, properties, {"status": "success", "message": "Connection established"})

        elif command == "generate_timetable":
            logger.info("Processing generate_timetable request")
            result = process_generate_timetable(message.get("data", {}))
            publish_reply(ch, properties, result)
            logger.info(f"Response sent for correlation_id: {correlation_id}")

        else:
            publish_reply(ch, properties, {"status": "error", "message": f"Unknown command: {command}"})

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in message: {e}")

    except Exception as e:
        logger.error(f"Unexpected error in callback: {e}", exc_info=True)

    finally:
        try:
            ch.basic_ack(delivery_tag=method.delivery_tag)
        except Exception as e:
            logger.warning(f"Error acknowledging message: {e}")


def create_connection_and_channel(rabbitmq_config):
    """Open a RabbitMQ connection and a channel bound to the request queue"""
    connection_params = pika.ConnectionParameters(
        host=rabbitmq_config["host"],
        port=rabbitmq_config["port"],
        virtual_host=rabbitmq_config["vhost"],
        credentials=pika.PlainCredentials(
            username=rabbitmq_config["username"], password=rabbitmq_config["password"]
        ),
        heartbeat=rabbitmq_config["heartbeat"],
        blocked_connection_timeout=300,
        socket_timeout=10,
        connection_attempts=rabbitmq_config["connection_attempts"],
        retry_delay=rabbitmq_config["retry_delay"],
    )

    connection = pika.BlockingConnection(connection_params)
    channel = connection.channel()

    queue_name = rabbitmq_config["queue_name"]
    channel.queue_declare(queue=queue_name, durable=True)
    # One generation at a time
    channel.basic_qos(prefetch_count=1)

    return connection, channel, queue_name


def close_quietly(connection, channel):
    try:
        if channel and not channel.is_closed:
            channel.stop_consuming()
            channel.close()
    except Exception as e:
        logger.warning(f"Error closing channel: {e}")

    try:
        if connection and not connection.is_closed:
            connection.close()
    except Exception as e:
        logger.warning(f"Error closing connection: {e}")


def start_consumer(max_reconnect_attempts: int = 10):
    """Start the RabbitMQ consumer, reconnecting with backoff when the broker goes away"""
    rabbitmq_config = get_rabbitmq_config()
    reconnect_delay = rabbitmq_config["retry_delay"]
    failures = 0

    while failures < max_reconnect_attempts:
        connection = None
        channel = None

        try:
            logger.info(f"Connecting to RabbitMQ at {rabbitmq_config['host']}:{rabbitmq_config['port']} "
                        f"(attempt {failures + 1}/{max_reconnect_attempts})")
            connection, channel, queue_name = create_connection_and_channel(rabbitmq_config)
            failures = 0

            channel.basic_consume(queue=queue_name, on_message_callback=callback)
            logger.info(f"Timetable consumer listening on queue: {queue_name}")
            channel.start_consuming()

        except pika.exceptions.AMQPConnectionError as e:
            failures += 1
            logger.error(f"AMQP connection error: {e}. Attempt {failures}/{max_reconnect_attempts}")

        except KeyboardInterrupt:
            logger.info("Shutdown signal received, stopping consumer...")
            break

        except Exception as e:
            failures += 1
            logger.error(f"Unexpected error: {e}. Attempt {failures}/{max_reconnect_attempts}", exc_info=True)

        finally:
            close_quietly(connection, channel)

        if failures < max_reconnect_attempts:
            logger.info(f"Reconnecting in {reconnect_delay} seconds...")
            time.sleep(reconnect_delay)
            reconnect_delay = min(reconnect_delay * 1.5, 60)

    else:
        logger.error(f"Max reconnection attempts ({max_reconnect_attempts}) reached. Exiting.")


if __name__ == "__main__":
    start_consumer()
