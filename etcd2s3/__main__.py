# etcd2s3/__main__.py
from etcd2s3.cli.main import main

if __name__ == "__main__":
    main()
