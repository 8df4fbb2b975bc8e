from cardvault.cli import main

raise SystemExit(main())
