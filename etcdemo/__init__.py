"""
etcdemo - consistency testing of etcd registers under concurrent load
"""
