"""ova2pve: import OVA appliances into Proxmox VE."""
__version__ = "1.0.0"
