"""
Built-in demo catalog.

Served whenever the document store is unreachable or empty so the storefront
never renders blank. Column assignments:
- Column 1 = Gold tier features
- Column 2 = Elite tier features (empty here, so Elite shows no features)
- Column 3 = Platinum tier features (empty here)
- Column 4 = popular add-ons
"""
from ..engine.feature_ordering import derive_tier_features
from ..engine.models import AlaCarteOption, CatalogSnapshot, Feature, PackageTier


FALLBACK_FEATURES = (
    Feature(
        id='rustguard-pro',
        name='RustGuard Pro',
        description='Underbody protection to prevent corrosion and structural damage.',
        points=(
            'Prolongs the life of vehicle',
            'Reduce repair/replacement costs',
            'Prevent structural weakness',
        ),
        use_cases=(
            'Protects against road salt in winter.',
            'Prevents rust from forming on the chassis.',
        ),
        price=0.0,  # Included in package price
        cost=300.0,
        warranty='Lifetime coverage',
        column=1,
        position=0,
        connector='AND',
    ),
    Feature(
        id='toughguard-premium',
        name='ToughGuard Premium',
        description='A premium paint sealant that protects against environmental damage.',
        points=(
            'One Time Application',
            'Eliminates waxing',
            'Covers damage from road tar, well water, bird droppings, tree sap, acid rain, etc.',
        ),
        use_cases=(
            'Keeps your car looking glossy and new.',
            'Makes washing easier as dirt and grime slide off.',
        ),
        price=0.0,
        cost=250.0,
        column=1,
        position=1,
        connector='AND',
    ),
    Feature(
        id='interior-protection',
        name='Interior Leather & Fabric Protection',
        description='A complete interior treatment to protect against stains and damage.',
        points=(
            'Protects against stains such as: coffee, juices, crayons, chocolate, gum',
            'Prevents cracking, covers rips, tears & burns',
        ),
        use_cases=(
            'Ideal for families with children or pets.',
            'Maintains the value and appearance of your interior.',
        ),
        price=0.0,
        cost=200.0,
        column=1,
        position=2,
        connector='OR',
    ),
    Feature(
        id='diamond-shield',
        name='Diamond Shield Windshield Protection',
        description='A treatment that improves visibility and protects your windshield.',
        points=(
            'Increase visibility in rain',
            'Protects against night glare',
            'Help against chipping, cracking, clouding, sand, salt',
        ),
        use_cases=(
            'Safer driving in bad weather conditions.',
            'Prevents minor chips from turning into large cracks.',
        ),
        price=0.0,
        cost=150.0,
        column=4,
        position=0,
        connector='AND',
    ),
)


FALLBACK_ALA_CARTE_OPTIONS = (
    AlaCarteOption(
        id='suntek-complete',
        name='Suntek Pro Complete Package',
        description='Protects the most vulnerable parts of your vehicle from rock chips and scratches.',
        points=('Prevents Rock Chips', 'Protects 18"-24" Hood', 'Front Bumper', 'Fenders', 'Mirrors', 'Door Cups'),
        price=1195.0,
        cost=550.0,
        warranty='10 Year Warranty',
        column=4,
        position=0,
        connector='AND',
        is_published=True,
    ),
    AlaCarteOption(
        id='suntek-standard',
        name='Suntek Pro Standard Package',
        description='Essential protection for the front-facing areas of your car.',
        points=('Protects 18"-24" Hood', 'Fenders', 'Mirrors'),
        price=795.0,
        cost=350.0,
        warranty='10 Year Warranty',
        column=4,
        position=1,
        connector='AND',
        is_published=True,
    ),
    AlaCarteOption(
        id='headlights',
        name='Headlights Protection',
        description='A durable film to prevent hazing, yellowing, and cracking of headlight lenses.',
        points=('Maintains clarity for optimal night visibility.',),
        price=295.0,
        cost=125.0,
        column=4,
        position=2,
        connector='AND',
        is_published=True,
    ),
    AlaCarteOption(
        id='doorcups',
        name='Door Cups Only',
        description='Invisible film applied behind door handles to prevent scratches from keys and fingernails.',
        points=('Protects a high-wear area from daily use.',),
        price=195.0,
        cost=75.0,
        column=4,
        position=3,
        connector='AND',
        is_published=True,
    ),
    AlaCarteOption(
        id='evernew',
        name='EverNew Appearance Protection',
        description='Mobile cosmetic repair service for minor damages.',
        points=(
            'Scratch, Chip, & Dent Repair',
            'Eliminate Insurance Claims',
            'Eliminate Bad Carfax',
            'Covered for 5 years',
            'We Come to You!',
        ),
        price=899.0,
        cost=400.0,
        is_new=True,
        column=4,
        position=4,
        connector='AND',
        is_published=True,
    ),
    AlaCarteOption(
        id='screen-defender',
        name='Screen Defender',
        description="Premium protection film for your vehicle's touchscreen display.",
        points=('Anti-glare coating', 'Scratch resistant', 'Easy installation', 'Crystal clear visibility'),
        price=149.0,
        cost=50.0,
        column=4,
        position=5,
        connector='AND',
        is_published=True,
    ),
)


def _package(id: str, name: str, price: float, cost: float, tier_color: str, is_recommended: bool = False):
    return PackageTier(
        id=id,
        name=name,
        price=price,
        cost=cost,
        tier_color=tier_color,
        is_recommended=is_recommended,
        features=tuple(derive_tier_features(name, FALLBACK_FEATURES)),
    )


FALLBACK_PACKAGES = (
    _package('package-elite', 'Elite', 3499.0, 900.0, 'gray-400'),
    _package('package-platinum', 'Platinum', 2899.0, 750.0, 'blue-400', is_recommended=True),
    _package('package-gold', 'Gold', 2399.0, 550.0, 'yellow-400'),
)


def fallback_snapshot() -> CatalogSnapshot:
    """A fresh snapshot of the demo catalog."""
    return CatalogSnapshot(
        packages=list(FALLBACK_PACKAGES),
        features=list(FALLBACK_FEATURES),
        ala_carte_options=list(FALLBACK_ALA_CARTE_OPTIONS),
        source='fallback',
    )
