from app.utils.options import normalize_options

class TestNormalizeOptions:
    """Test the legacy option formats"""

    def test_string_list(self):
        assert normalize_options(["A", "B"]) == [
            {"text": "A", "imageUrl": ""},
            {"text": "B", "imageUrl": ""}
        ]

    def test_object_list(self):
        raw = [{"text": "Cat", "imageUrl": "https://cdn.example.com/cat.png"}, {"text": "Dog"}]

        assert normalize_options(raw) == [
            {"text": "Cat", "imageUrl": "https://cdn.example.com/cat.png"},
            {"text": "Dog", "imageUrl": ""}
        ]

    def test_json_string(self):
        assert normalize_options('["True", "False"]') == [
            {"text": "True", "imageUrl": ""},
            {"text": "False", "imageUrl": ""}
        ]

    def test_comma_separated_string(self):
        assert [option["text"] for option in normalize_options("Paris, Lyon ,Nice")] == ["Paris", "Lyon", "Nice"]

    def test_empty_and_unexpected(self):
        assert normalize_options(None) == []
        assert normalize_options("") == []
        assert normalize_options('{"text": "x"}') == []
        assert normalize_options(12) == []
