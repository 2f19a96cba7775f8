"""A small {json:api} client: connection, resources, queries, errors and test mocks."""