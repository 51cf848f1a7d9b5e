"""
Tests for input validation utilities
"""
import pytest
from io import BytesIO
from werkzeug.datastructures import FileStorage
from validators import (
    validate_required_fields,
    validate_email,
    validate_phone,
    validate_string_length,
    validate_number_range,
    sanitize_filename,
    validate_file_extension,
    validate_image_upload,
    validate_registration,
    validate_customer_payload,
    validate_service_payload,
    validate_line_items,
    validate_quote_payload,
    validate_job_payload,
    validate_payment_payload,
    ALLOWED_IMAGE_EXTENSIONS,
    MAX_IMAGE_SIZE
)


@pytest.mark.unit
class TestRequiredFields:
    """Tests for required fields validation"""

    def test_validate_all_fields_present(self):
        """Test validation passes when all fields present"""
        data = {'name': 'John', 'email': 'john@example.com'}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is True
        assert error is None

    def test_validate_missing_field(self):
        """Test validation fails when field missing"""
        is_valid, error = validate_required_fields({'name': 'John'}, ['name', 'email'])
        assert is_valid is False
        assert 'email' in error

    def test_validate_blank_field(self):
        """Test validation fails when field is whitespace"""
        is_valid, error = validate_required_fields({'name': '   '}, ['name'])
        assert is_valid is False

    def test_validate_none_field(self):
        """Test validation fails when field is None"""
        is_valid, error = validate_required_fields({'name': None}, ['name'])
        assert is_valid is False


@pytest.mark.unit
class TestEmailValidation:
    """Tests for email validation"""

    def test_valid_email(self):
        """Test valid email passes"""
        is_valid, error = validate_email('test@example.com')
        assert is_valid is True
        assert error is None

    def test_invalid_email_no_at(self):
        """Test invalid email without @ fails"""
        is_valid, error = validate_email('invalidemail.com')
        assert is_valid is False

    def test_invalid_email_too_long(self):
        """Test email that's too long fails"""
        is_valid, error = validate_email('a' * 250 + '@example.com')
        assert is_valid is False

    def test_empty_email(self):
        """Test empty email fails"""
        is_valid, error = validate_email('')
        assert is_valid is False


@pytest.mark.unit
class TestPhoneValidation:
    """Tests for phone number validation"""

    def test_valid_phone_with_formatting(self):
        """Test valid phone with formatting passes"""
        is_valid, error = validate_phone('(555) 123-4567')
        assert is_valid is True

    def test_valid_phone_with_country_code(self):
        """Test valid phone with country code passes"""
        is_valid, error = validate_phone('+15551234567')
        assert is_valid is True

    def test_invalid_phone_too_short(self):
        """Test phone that's too short fails"""
        is_valid, error = validate_phone('12345')
        assert is_valid is False

    def test_invalid_phone_letters(self):
        """Test phone with letters fails"""
        is_valid, error = validate_phone('555-ABC-4567')
        assert is_valid is False


@pytest.mark.unit
class TestRanges:
    """Tests for string length and number range validation"""

    def test_string_within_range(self):
        """Test string within range passes"""
        assert validate_string_length('hello', 1, 10) == (True, None)

    def test_string_too_long(self):
        """Test string over the limit fails"""
        is_valid, error = validate_string_length('x' * 11, 1, 10)
        assert is_valid is False
        assert 'too long' in error

    def test_number_below_minimum(self):
        """Test number under the minimum fails"""
        is_valid, error = validate_number_range(-1, min_value=0)
        assert is_valid is False

    def test_bool_is_not_a_number(self):
        """Test booleans are rejected as numbers"""
        is_valid, error = validate_number_range(True, min_value=0)
        assert is_valid is False

    def test_string_is_not_a_number(self):
        """Test numeric strings are rejected"""
        is_valid, error = validate_number_range('10', min_value=0)
        assert is_valid is False


@pytest.mark.unit
class TestSanitization:
    """Tests for filename sanitization"""

    def test_sanitize_filename_blocks_traversal(self):
        """Test path traversal is removed"""
        assert '..' not in sanitize_filename('../../../etc/passwd')

    def test_sanitize_filename_empty_result(self):
        """Test a default name is used when nothing survives"""
        assert sanitize_filename('../../') == 'file'


@pytest.mark.unit
class TestImageUpload:
    """Tests for job photo upload validation"""

    def test_allowed_extension(self):
        """Test that jpg photos are accepted"""
        assert validate_file_extension('site.jpg', ALLOWED_IMAGE_EXTENSIONS) == (True, None)

    def test_disallowed_extension(self):
        """Test that executables are rejected"""
        is_valid, error = validate_file_extension('payload.exe', ALLOWED_IMAGE_EXTENSIONS)
        assert is_valid is False

    def test_heic_rejected(self):
        """Test that HEIC photos, which Pillow cannot open, are refused by extension"""
        assert 'heic' not in ALLOWED_IMAGE_EXTENSIONS
        is_valid, error = validate_file_extension('IMG_0001.heic', ALLOWED_IMAGE_EXTENSIONS)
        assert is_valid is False

    def test_missing_file(self):
        """Test that a missing upload is rejected"""
        is_valid, error, filename = validate_image_upload(None)
        assert is_valid is False
        assert filename is None

    def test_empty_file(self):
        """Test that a zero-byte upload is rejected"""
        upload = FileStorage(stream=BytesIO(b''), filename='empty.png')
        is_valid, error, filename = validate_image_upload(upload)
        assert is_valid is False
        assert 'empty' in error

    def test_oversized_file(self):
        """Test that uploads over the size limit are rejected"""
        upload = FileStorage(stream=BytesIO(b'0' * (MAX_IMAGE_SIZE + 1)), filename='big.png')
        is_valid, error, filename = validate_image_upload(upload)
        assert is_valid is False
        assert 'too large' in error

    def test_valid_upload_returns_safe_name(self, png_bytes):
        """Test that a valid upload returns a sanitized filename"""
        upload = FileStorage(stream=BytesIO(png_bytes), filename='my photo.png')
        is_valid, error, filename = validate_image_upload(upload)
        assert is_valid is True
        assert filename == 'my_photo.png'


@pytest.mark.unit
class TestRegistration:
    """Tests for sign-up validation"""

    def test_valid_registration(self):
        """Test a complete registration passes"""
        data = {'email': 'a@example.com', 'password': 'longenough',
                'business_name': 'Acme', 'service_types': ['cleaning', 'laundry']}
        assert validate_registration(data) == (True, None)

    def test_short_password(self):
        """Test passwords under 8 characters fail"""
        data = {'email': 'a@example.com', 'password': 'short', 'business_name': 'Acme'}
        is_valid, error = validate_registration(data)
        assert is_valid is False
        assert '8' in error

    def test_unknown_service_type(self):
        """Test unsupported business types fail"""
        data = {'email': 'a@example.com', 'password': 'longenough',
                'business_name': 'Acme', 'service_types': ['plumbing']}
        is_valid, error = validate_registration(data)
        assert is_valid is False
        assert 'plumbing' in error


@pytest.mark.unit
class TestPayloads:
    """Tests for customer, service, quote, job and payment payloads"""

    def test_customer_requires_name(self):
        """Test that a customer without a name fails"""
        is_valid, error = validate_customer_payload({'email': 'x@example.com'})
        assert is_valid is False
        assert error == 'Name is required'

    def test_customer_partial_update_without_name(self):
        """Test that updates may omit the name"""
        assert validate_customer_payload({'phone': '555-123-4567'}, partial=True) == (True, None)

    def test_customer_bad_email(self):
        """Test that a malformed email fails"""
        is_valid, error = validate_customer_payload({'name': 'Jo', 'email': 'nope'})
        assert is_valid is False

    def test_service_negative_price(self):
        """Test that negative prices fail"""
        is_valid, error = validate_service_payload({'name': 'Mowing', 'default_price': -5})
        assert is_valid is False

    def test_line_items_required(self):
        """Test that a quote needs at least one line item"""
        is_valid, error = validate_line_items([])
        assert is_valid is False

    def test_line_item_zero_quantity(self):
        """Test that quantity must be at least 1"""
        is_valid, error = validate_line_items([{'service_name': 'Mowing', 'price': 10, 'quantity': 0}])
        assert is_valid is False
        assert 'quantity' in error

    def test_line_item_missing_price(self):
        """Test that a line item without a price fails"""
        is_valid, error = validate_line_items([{'service_name': 'Mowing'}])
        assert is_valid is False

    def test_quote_requires_customer(self):
        """Test that quotes need a customer_id"""
        is_valid, error = validate_quote_payload({'services': [{'service_name': 'A', 'price': 1}]})
        assert is_valid is False
        assert 'customer_id' in error

    def test_job_requires_title(self):
        """Test that jobs need a title"""
        is_valid, error = validate_job_payload({'customer_id': 'abc'})
        assert is_valid is False
        assert 'title' in error

    def test_job_services_optional(self):
        """Test that a job may be created without line items"""
        assert validate_job_payload({'customer_id': 'abc', 'title': 'Mow'}) == (True, None)

    def test_payment_amount_positive(self):
        """Test that zero payments fail"""
        is_valid, error = validate_payment_payload({'amount': 0})
        assert is_valid is False

    def test_payment_method_restricted(self):
        """Test that stripe cannot be recorded manually"""
        is_valid, error = validate_payment_payload({'amount': 10, 'payment_method': 'stripe'})
        assert is_valid is False

    def test_payment_valid(self):
        """Test a cash payment passes"""
        assert validate_payment_payload({'amount': 25.5, 'payment_method': 'cash'}) == (True, None)
