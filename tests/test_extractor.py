"""Tests for pattern-based booking extraction."""

import pytest

from ecoagent.services.extractor import extract_booking_details


class TestExtractBookingDetails:
    """Test extraction of each booking field from chat text."""

    def test_name_and_phone(self):
        """Test the first turn of a typical conversation."""
        draft = extract_booking_details("My name is Sarah Jones and my phone is 204-555-1234")

        assert draft.provided_fields() == {
            "customer_name": "Sarah Jones",
            "phone_number": "204-555-1234",
        }

    def test_rooms(self):
        """Test bedrooms and bathrooms in one sentence."""
        draft = extract_booking_details("Actually it's 3 bedrooms 2 bathrooms")

        assert draft.provided_fields() == {"bedrooms": 3, "bathrooms": 2}

    @pytest.mark.parametrize(
        "text",
        ["2045551234", "204-555-1234", "204.555.1234", "204 555 1234", "(204) 555-1234"],
    )
    def test_phone_formats(self, text):
        """Test that common separators are accepted."""
        draft = extract_booking_details(f"call me at {text} please")

        assert draft.phone_number == text

    def test_phone_inside_longer_number_ignored(self):
        """Test that a 10-digit run inside a longer number is not a phone."""
        draft = extract_booking_details("order 1234567890123 shipped")

        assert draft.phone_number is None

    def test_email(self):
        draft = extract_booking_details("reach me at sarah.jones+home@example.co.uk thanks")

        assert draft.email == "sarah.jones+home@example.co.uk"

    def test_name_phrases(self):
        """Test each introduction phrase."""
        assert extract_booking_details("Hi, I'm Tom").customer_name == "Tom"
        assert extract_booking_details("i am Maria Lopez").customer_name == "Maria Lopez"
        assert extract_booking_details("Hello, this is Dave calling").customer_name == "Dave"

    def test_lowercase_word_is_not_a_name(self):
        """Test that "I am looking" does not yield a name."""
        draft = extract_booking_details("I am looking for a cleaning")

        assert draft.customer_name is None

    def test_address(self):
        """Test an address cut at the next punctuation."""
        draft = extract_booking_details("I live at 123 Main Street, Winnipeg.")

        assert draft.address == "123 Main Street"

    def test_address_requires_street_keyword(self):
        draft = extract_booking_details("see you at 5 pm")

        assert draft.address is None

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("a one-time clean", "one-time"),
            ("bi-weekly would be great", "bi-weekly"),
            ("maybe weekly", "weekly"),
            ("monthly please", "monthly"),
            ("every two weeks", "every two weeks"),
        ],
    )
    def test_frequency(self, text, expected):
        draft = extract_booking_details(text)

        assert draft.cleaning_frequency == expected

    def test_no_match(self):
        """Test that unrelated text yields an empty draft."""
        draft = extract_booking_details("What services do you offer?")

        assert draft.is_empty()
        assert draft.model_fields_set == set()

    def test_empty_text(self):
        assert extract_booking_details("").is_empty()

    def test_idempotent(self):
        """Test that repeated extraction yields identical drafts."""
        text = "My name is Sarah Jones, email sarah@example.com, 3 bedrooms, weekly"

        first = extract_booking_details(text)
        second = extract_booking_details(text)

        assert first == second
        assert first.model_fields_set == second.model_fields_set
