from sqlbandwidth.cli import main

raise SystemExit(main())
