"""Faker-based data generators."""

from faker import Faker

from rowseed.generators.registry import GeneratorFunc, GeneratorRegistry

fake = Faker("en_US")

# Value function name -> Faker method
FAKER_METHODS = {
    # People
    "name": "name",
    "firstName": "first_name",
    "lastName": "last_name",
    "namePrefix": "prefix",
    "nameSuffix": "suffix",
    "email": "email",
    "username": "user_name",
    "password": "password",
    "phone": "phone_number",
    "phoneFormatted": "phone_number",
    "sSN": "ssn",
    "jobTitle": "job",
    # Companies
    "company": "company",
    "companySuffix": "company_suffix",
    "bS": "bs",
    "buzzWord": "catch_phrase",
    "slogan": "catch_phrase",
    # Addresses
    "address": "address",
    "street": "street_address",
    "streetName": "street_name",
    "streetNumber": "building_number",
    "streetSuffix": "street_suffix",
    "city": "city",
    "state": "state",
    "stateAbr": "state_abbr",
    "country": "country",
    "countryAbr": "country_code",
    "zip": "zipcode",
    "postcode": "postcode",
    "latitude": "latitude",
    "longitude": "longitude",
    "timeZone": "timezone",
    # Internet
    "uRL": "url",
    "url": "url",
    "uri": "uri",
    "domainName": "domain_name",
    "domainSuffix": "tld",
    "iPv4Address": "ipv4",
    "iPv6Address": "ipv6",
    "macAddress": "mac_address",
    "userAgent": "user_agent",
    "chromeUserAgent": "chrome",
    "firefoxUserAgent": "firefox",
    "safariUserAgent": "safari",
    "operaUserAgent": "opera",
    "slug": "slug",
    # Text
    "word": "word",
    "sentence": "sentence",
    "paragraph": "paragraph",
    "text": "text",
    "emoji": "emoji",
    "language": "language_name",
    "hackerPhrase": "catch_phrase",
    # Colors
    "color": "color_name",
    "safeColor": "safe_color_name",
    "hexColor": "hex_color",
    # Payment
    "achAccount": "bban",
    "achRouting": "aba",
    "creditCardNumber": "credit_card_number",
    "creditCardType": "credit_card_provider",
    "creditCardExp": "credit_card_expire",
    "creditCardCvv": "credit_card_security_code",
    "currencyShort": "currency_code",
    "currencyLong": "currency_name",
    "iban": "iban",
    "swift": "swift",
    # Dates
    "weekDay": "day_of_week",
    "monthString": "month_name",
    "year": "year",
    "date": "date",
    "time": "time",
    # Files and codes
    "fileExtension": "file_extension",
    "fileMimeType": "mime_type",
    "fileName": "file_name",
    "isbn": "isbn13",
    "ean": "ean13",
    "licensePlate": "license_plate",
    "uUID": "uuid4",
    "md5": "md5",
    "sha256": "sha256",
}


class FakerGenerator:
    """Generate reproducible values with one Faker method."""

    def __init__(self, method: str, faker: Faker | None = None):
        """
        Initialize generator.

        Args:
            method: Faker method name (e.g. 'first_name')
            faker: Faker instance (defaults to the shared en_US instance)
        """
        self.method = method
        self.faker = faker or fake

    def __call__(self, seed: int) -> str:
        """Generate a value; the same seed always yields the same value."""
        self.faker.seed_instance(seed)
        return str(getattr(self.faker, self.method)())


def faker_generators() -> dict[str, GeneratorFunc]:
    """Build the Faker-backed generator catalog."""
    return {name: FakerGenerator(method) for name, method in FAKER_METHODS.items()}


def register_faker_generators(registry: GeneratorRegistry) -> None:
    """Populate a registry with every Faker-backed generator."""
    for name, func in faker_generators().items():
        registry.register(name, func)
