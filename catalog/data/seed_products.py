"""Bundled seed catalog used when neither the store nor the API has products."""

from types import MappingProxyType
from typing import List

from ..models.product import Product

_SEED_RECORDS = (
    {
        "id": "seed-001",
        "name": "Wireless Noise-Cancelling Headphones",
        "description": "Over-ear Bluetooth headphones with active noise cancellation and 30-hour battery life.",
        "price": 199.99,
        "category": "electronics",
        "imageUrl": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e",
        "inStock": True,
        "tags": ["audio", "wireless", "bluetooth"],
        "sku": "ELEC-HP-001",
        "brand": "SoundWave",
        "rating": 4.6,
        "reviewCount": 1284,
        "createdAt": "2024-01-15T10:00:00.000Z",
        "updatedAt": "2024-01-15T10:00:00.000Z",
    },
    {
        "id": "seed-002",
        "name": "Smart Fitness Watch",
        "description": "Water-resistant fitness tracker with heart-rate monitoring, GPS and sleep tracking.",
        "price": 149.5,
        "category": "electronics",
        "imageUrl": "https://images.unsplash.com/photo-1523275335684-37898b6baf30",
        "inStock": True,
        "tags": ["wearable", "fitness", "gps"],
        "sku": "ELEC-SW-002",
        "brand": "PulseTech",
        "rating": 4.3,
        "reviewCount": 642,
        "createdAt": "2024-01-20T09:30:00.000Z",
        "updatedAt": "2024-01-20T09:30:00.000Z",
    },
    {
        "id": "seed-003",
        "name": "Organic Cotton T-Shirt",
        "description": "Soft crew-neck t-shirt made from 100% organic cotton, pre-shrunk and breathable.",
        "price": 24.99,
        "category": "clothing",
        "imageUrl": "https://images.unsplash.com/photo-1521572163474-6864f9cf17ab",
        "inStock": True,
        "tags": ["cotton", "casual", "organic"],
        "sku": "CLO-TS-003",
        "brand": "EarthWear",
        "rating": 4.5,
        "reviewCount": 318,
        "createdAt": "2024-02-02T14:15:00.000Z",
        "updatedAt": "2024-02-02T14:15:00.000Z",
    },
    {
        "id": "seed-004",
        "name": "Waterproof Hiking Jacket",
        "description": "Lightweight shell jacket with sealed seams, adjustable hood and packable design.",
        "price": 129.0,
        "category": "clothing",
        "imageUrl": "https://images.unsplash.com/photo-1551028719-00167b16eac5",
        "inStock": False,
        "tags": ["outdoor", "waterproof", "jacket"],
        "sku": "CLO-JK-004",
        "brand": "TrailPeak",
        "createdAt": "2024-02-10T08:45:00.000Z",
        "updatedAt": "2024-02-10T08:45:00.000Z",
    },
    {
        "id": "seed-005",
        "name": "Ceramic Pour-Over Coffee Set",
        "description": "Hand-glazed ceramic dripper with matching carafe and two cups for slow brewing.",
        "price": 45.0,
        "category": "home",
        "imageUrl": "https://images.unsplash.com/photo-1495474472287-4d71bcdd2085",
        "inStock": True,
        "tags": ["coffee", "kitchen", "ceramic"],
        "brand": "Kiln & Co",
        "rating": 4.8,
        "reviewCount": 96,
        "createdAt": "2024-02-18T16:20:00.000Z",
        "updatedAt": "2024-02-18T16:20:00.000Z",
    },
    {
        "id": "seed-006",
        "name": "Linen Throw Pillow Covers",
        "description": "Set of two stonewashed linen pillow covers with hidden zipper closure.",
        "price": 32.5,
        "category": "home",
        "imageUrl": "https://images.unsplash.com/photo-1584100936595-c0654b55a2e2",
        "inStock": True,
        "tags": ["decor", "linen", "bedroom"],
        "sku": "HOME-PC-006",
        "createdAt": "2024-03-01T11:00:00.000Z",
        "updatedAt": "2024-03-01T11:00:00.000Z",
    },
    {
        "id": "seed-007",
        "name": "The Pragmatic Developer",
        "description": "A practical guide to writing maintainable software, from first commit to production.",
        "price": 39.99,
        "category": "books",
        "imageUrl": "https://images.unsplash.com/photo-1544947950-fa07a98d237f",
        "inStock": True,
        "tags": ["programming", "software", "career"],
        "sku": "BOOK-PD-007",
        "brand": "Northwind Press",
        "rating": 4.7,
        "reviewCount": 2210,
        "createdAt": "2024-03-05T13:10:00.000Z",
        "updatedAt": "2024-03-05T13:10:00.000Z",
    },
    {
        "id": "seed-008",
        "name": "Yoga Mat with Alignment Lines",
        "description": "Non-slip 6mm yoga mat with printed alignment guides and carrying strap.",
        "price": 59.0,
        "category": "sports",
        "imageUrl": "https://images.unsplash.com/photo-1601925260368-ae2f83cf8b7f",
        "inStock": True,
        "tags": ["yoga", "fitness", "mat"],
        "sku": "SPT-YM-008",
        "brand": "ZenFlow",
        "createdAt": "2024-03-12T07:30:00.000Z",
        "updatedAt": "2024-03-12T07:30:00.000Z",
    },
    {
        "id": "seed-009",
        "name": "Vitamin C Brightening Serum",
        "description": "Lightweight daily serum with 15% vitamin C and hyaluronic acid for even skin tone.",
        "price": 28.0,
        "category": "beauty",
        "imageUrl": "https://images.unsplash.com/photo-1620916566398-39f1143ab7be",
        "inStock": False,
        "tags": ["skincare", "serum", "vitamin-c"],
        "sku": "BEA-VC-009",
        "brand": "Lumen Skin",
        "rating": 4.1,
        "reviewCount": 587,
        "createdAt": "2024-03-20T15:00:00.000Z",
        "updatedAt": "2024-03-20T15:00:00.000Z",
    },
    {
        "id": "seed-010",
        "name": "Wooden Building Blocks Set",
        "description": "Set of 100 sustainably sourced wooden blocks in assorted shapes and colors.",
        "price": 34.99,
        "category": "toys",
        "imageUrl": "https://images.unsplash.com/photo-1558060370-d644479cb6f7",
        "inStock": True,
        "tags": ["kids", "wooden", "educational"],
        "sku": "TOY-BB-010",
        "brand": "TinyMakers",
        "createdAt": "2024-04-02T10:40:00.000Z",
        "updatedAt": "2024-04-02T10:40:00.000Z",
    },
    {
        "id": "seed-011",
        "name": "Portable Tire Inflator",
        "description": "Cordless digital tire inflator with auto shut-off, LED light and USB charging.",
        "price": 79.95,
        "category": "automotive",
        "imageUrl": "https://images.unsplash.com/photo-1486262715619-67b85e0b08d3",
        "inStock": True,
        "tags": ["car", "tools", "portable"],
        "sku": "AUT-TI-011",
        "brand": "RoadReady",
        "rating": 4.4,
        "reviewCount": 873,
        "createdAt": "2024-04-15T12:00:00.000Z",
        "updatedAt": "2024-04-15T12:00:00.000Z",
    },
    {
        "id": "seed-012",
        "name": "Mechanical Keyboard",
        "description": "Compact 75% mechanical keyboard with hot-swappable switches and RGB backlight.",
        "price": 109.0,
        "category": "electronics",
        "imageUrl": "https://images.unsplash.com/photo-1587829741301-dc798b83add3",
        "inStock": False,
        "tags": ["keyboard", "mechanical", "rgb"],
        "sku": "ELEC-KB-012",
        "brand": "KeyForge",
        "createdAt": "2024-04-28T09:00:00.000Z",
        "updatedAt": "2024-04-28T09:00:00.000Z",
    },
)

SEED_RECORDS = tuple(MappingProxyType(record) for record in _SEED_RECORDS)


def load_seed_products() -> List[Product]:
    """Return fresh Product copies of the seed catalog; the records stay untouched."""
    return [Product.from_dict(dict(record)) for record in SEED_RECORDS]
