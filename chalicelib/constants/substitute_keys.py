to_db = {
    'id': 'id_',
    'partkey': None,
    'sortkey': None
}

from_db = {
    'id_': 'id',
    'partkey': None,
    'sortkey': None,
    'record_type': None,
    'ttl_': None
}
