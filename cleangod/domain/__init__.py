"""Domain packages: each holds its schemas, repository, service and router"""
