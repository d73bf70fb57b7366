"""Building blocks for a LoRaWAN gateway service: packets, routing filters, regions, fees, settings and self-updates."""

__version__ = "0.1.0"