"""rfhealth - LoRaWAN uplink ingestion and RF health analytics."""
