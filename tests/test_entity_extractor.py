from propbot.services.entity_extractor import extract, extract_amenities, extract_prices


def test_price_range_from_two_mentions():
    data = extract("budget between 50 lakh and 1.2 cr")
    assert data.price.min_price == 5_000_000
    assert data.price.max_price == 12_000_000


def test_single_price_sets_both_bounds():
    data = extract("something under 80 lakh")
    assert data.price.min_price == data.price.max_price == 8_000_000


def test_price_units_are_case_insensitive():
    assert extract_prices("2 Cr or 45 LACS") == [20_000_000, 4_500_000]


def test_location_requires_capitalised_place_name():
    assert extract("3bhk flat in Rajkot under 80 lakh").location.city == "Rajkot"
    assert extract("villa near Kalavad Road please").location.city == "Kalavad Road"
    assert "location" not in extract("a flat in rajkot").model_fields_set


def test_bedrooms_and_property_type():
    data = extract("Need a 2 BHK Flat")
    assert data.bedrooms == 2
    assert data.property_type == "flat"


def test_property_type_follows_vocabulary_order():
    assert extract("flat or apartment, either works").property_type == "apartment"


def test_amenities_deduplicated_in_order():
    assert extract_amenities("swimming pool, gym and a pool with parking") == ["gym", "pool", "parking"]
    assert extract_amenities("has an elevator") == ["lift"]


def test_unmatched_message_sets_nothing():
    data = extract("thanks a lot")
    assert data.is_empty()
    assert data.as_record() == {}


def test_as_record_only_contains_matched_fields():
    record = extract("3bhk flat in Rajkot under 80 lakh with parking").as_record()
    assert record == {
        "price": {"min_price": 8_000_000, "max_price": 8_000_000},
        "location": {"city": "Rajkot"},
        "bedrooms": 3,
        "property_type": "flat",
        "amenities": ["parking"],
    }


def test_place_name_stops_at_capitalised_connective():
    assert extract("Villa in Rajkot With Pool").location.city == "Rajkot"
    assert extract("Flat Near Kalavad Road Under 80 lakh").location.city == "Kalavad Road"
    assert "location" not in extract("Something In With Parking").model_fields_set
