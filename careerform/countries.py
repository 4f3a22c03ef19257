# careerform/countries.py
from __future__ import annotations

# (ISO code, country name, dial code)
COUNTRIES: list[tuple[str, str, str]] = [
    ('IN', 'India', '+91'),
    ('US', 'United States', '+1'),
    ('GB', 'United Kingdom', '+44'),
    ('CA', 'Canada', '+1'),
    ('AU', 'Australia', '+61'),
    ('DE', 'Germany', '+49'),
    ('FR', 'France', '+33'),
    ('JP', 'Japan', '+81'),
    ('CN', 'China', '+86'),
    ('BR', 'Brazil', '+55'),
    ('RU', 'Russia', '+7'),
    ('KR', 'South Korea', '+82'),
    ('IT', 'Italy', '+39'),
    ('ES', 'Spain', '+34'),
    ('MX', 'Mexico', '+52'),
    ('ID', 'Indonesia', '+62'),
    ('NL', 'Netherlands', '+31'),
    ('SA', 'Saudi Arabia', '+966'),
    ('TR', 'Turkey', '+90'),
    ('CH', 'Switzerland', '+41'),
    ('PL', 'Poland', '+48'),
    ('BE', 'Belgium', '+32'),
    ('SE', 'Sweden', '+46'),
    ('NO', 'Norway', '+47'),
    ('AT', 'Austria', '+43'),
    ('AE', 'United Arab Emirates', '+971'),
    ('SG', 'Singapore', '+65'),
    ('MY', 'Malaysia', '+60'),
    ('IL', 'Israel', '+972'),
    ('HK', 'Hong Kong', '+852'),
    ('IE', 'Ireland', '+353'),
    ('DK', 'Denmark', '+45'),
    ('FI', 'Finland', '+358'),
    ('NZ', 'New Zealand', '+64'),
    ('ZA', 'South Africa', '+27'),
    ('PT', 'Portugal', '+351'),
    ('GR', 'Greece', '+30'),
    ('CZ', 'Czech Republic', '+420'),
    ('RO', 'Romania', '+40'),
    ('VN', 'Vietnam', '+84'),
    ('AR', 'Argentina', '+54'),
    ('CO', 'Colombia', '+57'),
    ('CL', 'Chile', '+56'),
    ('PH', 'Philippines', '+63'),
    ('TH', 'Thailand', '+66'),
    ('EG', 'Egypt', '+20'),
    ('PK', 'Pakistan', '+92'),
    ('BD', 'Bangladesh', '+880'),
    ('NG', 'Nigeria', '+234'),
    ('KE', 'Kenya', '+254'),
]

def dial_code_options() -> dict[str, str]:
    """Select options keyed by dial code; countries sharing a code share an entry."""
    names_by_code: dict[str, list[str]] = {}
    for _, name, dial_code in COUNTRIES:
        names_by_code.setdefault(dial_code, []).append(name)
    return {code: f"{code} {' / '.join(names)}" for code, names in names_by_code.items()}
