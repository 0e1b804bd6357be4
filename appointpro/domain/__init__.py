"""Business domains - schemas, repositories, services and routers per area"""
