"""Reference vocabularies and speech-to-text alias tables.

Alias keys are already cleaned (see ``clean_text``) so lookups are exact.
"""

KNOWN_CITIES = [
    "Vancouver",
    "Burnaby",
    "Richmond",
    "Surrey",
    "Langley",
    "Coquitlam",
    "Port Coquitlam",
    "Port Moody",
    "Maple Ridge",
    "Pitt Meadows",
    "Abbotsford",
    "Chilliwack",
    "Mission",
    "Delta",
    "North Vancouver",
    "West Vancouver",
    "New Westminster",
]

CITY_ALIASES = {
    "hobbits": "Abbotsford",
    "hobits": "Abbotsford",
    "abotsford": "Abbotsford",
    "vancover": "Vancouver",
    "surree": "Surrey",
    "north van": "North Vancouver",
    "west van": "West Vancouver",
    "new west": "New Westminster",
    "poco": "Port Coquitlam",
}

KNOWN_MAKES = [
    "Acura",
    "Audi",
    "BMW",
    "Buick",
    "Cadillac",
    "Chevrolet",
    "Chrysler",
    "Dodge",
    "Fiat",
    "Ford",
    "GMC",
    "Honda",
    "Hyundai",
    "Infiniti",
    "Jaguar",
    "Jeep",
    "Kia",
    "Land Rover",
    "Lexus",
    "Lincoln",
    "Mazda",
    "Mercedes-Benz",
    "Mini",
    "Mitsubishi",
    "Nissan",
    "Pontiac",
    "Porsche",
    "Ram",
    "Saturn",
    "Subaru",
    "Suzuki",
    "Tesla",
    "Toyota",
    "Volkswagen",
    "Volvo",
]

MAKE_ALIASES = {
    "chevy": "Chevrolet",
    "chev": "Chevrolet",
    "vw": "Volkswagen",
    "volks wagon": "Volkswagen",
    "mercedes": "Mercedes-Benz",
    "mercedes benz": "Mercedes-Benz",
    "benz": "Mercedes-Benz",
    "beamer": "BMW",
    "bimmer": "BMW",
    "b m w": "BMW",
    "g m c": "GMC",
    "hundai": "Hyundai",
    "hyundia": "Hyundai",
    "toyoda": "Toyota",
    "hunda": "Honda",
}

# Cities close enough to the yard that the quote is trimmed slightly.
CLOSE_IN_CITY_PATTERN = (
    r"vancouver|richmond|north vancouver|coquitlam|burnaby|new westminster|delta"
)
