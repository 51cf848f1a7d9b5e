"""
Input Validation & Sanitization Utilities
Provides validation for API request payloads and job photo uploads
"""
import re
import os
from typing import Dict, Any, List, Optional, Tuple
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename
import logging

logger = logging.getLogger(__name__)

# Allowed file extensions for job photos
ALLOWED_IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}

# Maximum file sizes (in bytes)
MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB

MIN_PASSWORD_LENGTH = 8

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?1?\d{9,15}$')


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [
        field for field in required_fields
        if field not in data or data[field] is None
        or (isinstance(data[field], str) and not data[field].strip())
    ]

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    return True, None


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone or not isinstance(phone, str):
        return False, "Phone must be a non-empty string"

    # Remove common separators
    cleaned_phone = re.sub(r'[\s\-\(\)\.]', '', phone)

    if not PHONE_PATTERN.match(cleaned_phone):
        return False, "Invalid phone number format"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None, max_value: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Value must be a number"

    if min_value is not None and value < min_value:
        return False, f"Value too small (minimum {min_value})"

    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"

    return True, None


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal attacks

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    safe_name = secure_filename(filename)

    # If secure_filename removes everything, generate a default name
    if not safe_name:
        safe_name = 'file'

    return safe_name


def validate_file_extension(filename: str, allowed_extensions: set) -> Tuple[bool, Optional[str]]:
    """
    Validate file has an allowed extension

    Args:
        filename: Filename to check
        allowed_extensions: Set of allowed extensions (without dots)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename or '.' not in filename:
        return False, "File must have an extension"

    extension = filename.rsplit('.', 1)[1].lower()

    if extension not in allowed_extensions:
        return False, f"File type not allowed. Allowed types: {', '.join(sorted(allowed_extensions))}"

    return True, None


def validate_file_upload(
    file: FileStorage,
    allowed_extensions: set,
    max_size: int,
    file_type: str = "file"
) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Comprehensive file upload validation

    Args:
        file: FileStorage object from request.files
        allowed_extensions: Set of allowed extensions
        max_size: Maximum file size in bytes
        file_type: Type of file for error messages

    Returns:
        Tuple of (is_valid, error_message, sanitized_filename)
    """
    if not file or not file.filename:
        return False, f"No {file_type} provided", None

    safe_filename = sanitize_filename(file.filename)

    is_valid, error = validate_file_extension(safe_filename, allowed_extensions)
    if not is_valid:
        return False, error, None

    # Check actual size of the stream
    file.stream.seek(0, os.SEEK_END)
    file_size = file.stream.tell()
    file.stream.seek(0)

    if file_size > max_size:
        max_mb = max_size / (1024 * 1024)
        return False, f"{file_type.capitalize()} too large (maximum {max_mb:.1f}MB)", None

    if file_size == 0:
        return False, f"{file_type.capitalize()} is empty", None

    logger.info(f"File validation successful: {safe_filename} ({file_size} bytes)")
    return True, None, safe_filename


def validate_image_upload(file: FileStorage) -> Tuple[bool, Optional[str], Optional[str]]:
    """Validate image file upload"""
    return validate_file_upload(file, ALLOWED_IMAGE_EXTENSIONS, MAX_IMAGE_SIZE, "image")


# =============================================================================
# REQUEST PAYLOADS
# =============================================================================

def validate_registration(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a sign-up request"""
    is_valid, error = validate_required_fields(data, ['email', 'password', 'business_name'])
    if not is_valid:
        return False, error

    is_valid, error = validate_email(data['email'])
    if not is_valid:
        return False, error

    is_valid, error = validate_password(data['password'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data['business_name'], min_length=1, max_length=255)
    if not is_valid:
        return False, f"Invalid business_name: {error}"

    return validate_service_types(data.get('service_types', []))


def validate_password(password: Any) -> Tuple[bool, Optional[str]]:
    """Passwords must be strings of at least MIN_PASSWORD_LENGTH characters"""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return True, None


def validate_service_types(service_types: Any) -> Tuple[bool, Optional[str]]:
    """Service types must be a list drawn from the supported business types"""
    from database.models import SERVICE_TYPES

    if not isinstance(service_types, list):
        return False, "service_types must be an array"

    unknown = [t for t in service_types if t not in SERVICE_TYPES]
    if unknown:
        return False, f"Unknown service types: {', '.join(map(str, unknown))}"

    return True, None


def validate_customer_payload(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate customer create/update data

    Args:
        data: Request data dictionary
        partial: True for updates, where name may be omitted

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not partial or 'name' in data:
        is_valid, error = validate_required_fields(data, ['name'])
        if not is_valid:
            return False, "Name is required"
        is_valid, error = validate_string_length(data['name'], min_length=1, max_length=255)
        if not is_valid:
            return False, f"Invalid name: {error}"

    if data.get('email'):
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, "Invalid email address"

    if data.get('phone'):
        is_valid, error = validate_phone(data['phone'])
        if not is_valid:
            return False, error

    return True, None


def validate_service_payload(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate a catalogue service create/update"""
    if not partial or 'name' in data:
        is_valid, error = validate_required_fields(data, ['name'])
        if not is_valid:
            return False, error

    if not partial or 'default_price' in data:
        is_valid, error = validate_number_range(data.get('default_price'), min_value=0)
        if not is_valid:
            return False, f"Invalid default_price: {error}"

    return True, None


def validate_line_items(items: Any, required: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Validate quote/job line items

    Each item needs a service_name, a price >= 0 and an integer quantity >= 1.
    """
    if items is None and not required:
        return True, None

    if not isinstance(items, list):
        return False, "services must be an array"

    if required and not items:
        return False, "At least one service is required"

    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            return False, f"Service {idx} must be an object"

        is_valid, error = validate_required_fields(item, ['service_name'])
        if not is_valid:
            return False, f"Service {idx}: {error}"

        is_valid, error = validate_number_range(item.get('price'), min_value=0)
        if not is_valid:
            return False, f"Service {idx} invalid price: {error}"

        quantity = item.get('quantity', 1)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            return False, f"Service {idx} quantity must be a whole number of at least 1"

    return True, None


def validate_quote_payload(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate quote create/update data"""
    if not partial:
        is_valid, error = validate_required_fields(data, ['customer_id'])
        if not is_valid:
            return False, error

    if not partial or 'services' in data:
        is_valid, error = validate_line_items(data.get('services'))
        if not is_valid:
            return False, error

    return True, None


def validate_job_payload(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate job create/update data"""
    required = ['title'] if partial else ['customer_id', 'title']
    if not partial or 'title' in data:
        is_valid, error = validate_required_fields(data, required)
        if not is_valid:
            return False, error

    if 'services' in data:
        is_valid, error = validate_line_items(data.get('services'), required=False)
        if not is_valid:
            return False, error

    return True, None


def validate_payment_payload(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a manually recorded invoice payment"""
    amount = data.get('amount')
    is_valid, error = validate_number_range(amount, min_value=0.01)
    if not is_valid:
        return False, f"Invalid amount: {error}"

    method = data.get('payment_method', 'other')
    if method not in ('cash', 'check', 'other'):
        return False, "payment_method must be one of: cash, check, other"

    return True, None
